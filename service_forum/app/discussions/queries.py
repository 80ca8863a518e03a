"""
GraphQL documents used by the discussions service.
"""

AUTHOR_FIELDS = "author { login avatarUrl url }"

CATEGORIES_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    discussionCategories(first: 20) {
      nodes { id name description emoji slug }
    }
  }
}
"""

THREADS_BY_CATEGORY_QUERY = f"""
query($owner: String!, $repo: String!, $categoryId: ID!, $first: Int!, $after: String,
      $orderBy: DiscussionOrderField!) {{
  repository(owner: $owner, name: $repo) {{
    discussions(first: $first, categoryId: $categoryId, after: $after,
                orderBy: {{ field: $orderBy, direction: DESC }}) {{
      pageInfo {{ hasNextPage endCursor }}
      nodes {{
        id number title createdAt
        {AUTHOR_FIELDS}
        comments {{ totalCount }}
        reactions {{ totalCount }}
      }}
    }}
  }}
}}
"""

THREAD_QUERY = f"""
query($owner: String!, $repo: String!, $number: Int!) {{
  repository(owner: $owner, name: $repo) {{
    discussion(number: $number) {{
      id number title body bodyHTML createdAt
      {AUTHOR_FIELDS}
      category {{ name slug }}
      reactions(first: 10) {{ nodes {{ content }} totalCount }}
      comments(first: 50) {{
        totalCount
        pageInfo {{ hasNextPage endCursor }}
        nodes {{
          id body bodyHTML createdAt
          {AUTHOR_FIELDS}
          reactions(first: 10) {{ nodes {{ content }} totalCount }}
          replies(first: 20) {{
            nodes {{
              id body bodyHTML createdAt
              {AUTHOR_FIELDS}
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""

REPO_ID_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) { id }
}
"""

SEARCH_QUERY = f"""
query($searchQuery: String!, $first: Int!, $after: String) {{
  search(query: $searchQuery, type: DISCUSSION, first: $first, after: $after) {{
    discussionCount
    pageInfo {{ hasNextPage endCursor }}
    nodes {{
      ... on Discussion {{
        id number title createdAt
        {AUTHOR_FIELDS}
        comments {{ totalCount }}
        reactions {{ totalCount }}
        category {{ name slug }}
      }}
    }}
  }}
}}
"""

VIEWER_QUERY = "{ viewer { login avatarUrl } }"

CREATE_DISCUSSION_MUTATION = """
mutation($repoId: ID!, $categoryId: ID!, $title: String!, $body: String!) {
  createDiscussion(input: {
    repositoryId: $repoId
    categoryId: $categoryId
    title: $title
    body: $body
  }) {
    discussion { number title }
  }
}
"""

ADD_COMMENT_MUTATION = """
mutation($discussionId: ID!, $body: String!, $replyToId: ID) {
  addDiscussionComment(input: {
    discussionId: $discussionId
    body: $body
    replyToId: $replyToId
  }) {
    comment { id createdAt }
  }
}
"""
