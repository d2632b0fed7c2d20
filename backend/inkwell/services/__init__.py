# Services package init
"""
Inkwell Backend: Services Layer
================================

What:  Business logic layer sitting between routes (HTTP) and the store or
       the remote content source.

Service Inventory:
    - PostService: CRUD on the posts table, meta (de)serialization
    - ContentSource (abstract): Interface for listing repository contents
    - GitHubContentService: ContentSource over the GitHub REST API
    - TreeFetcher: Recursive md/txt discovery over a ContentSource
    - BaseUrlService: One-time base-URL derivation and persistence
"""
