"""
Modern Blog API — Services Layer
==================================

Service Inventory:
    - PostService:          posts, listing/search/pagination, comments
    - CategoryService:      categories and slug lookup
    - AuthService:          registration, login, admin bootstrap
    - FileService:          image upload validation and storage
    - AuthorizationPolicy:  who may do what to which resource

Services are stateless singletons; the AsyncSession is passed per call.
"""
