"""catalog/ -- Product catalog: domain models, SQL store and use cases.

Layer rule: catalog/ may import from core/ and auth/ (for Identity and the
creator lookup). api/ imports from catalog/, never the reverse.
"""
