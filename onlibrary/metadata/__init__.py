from .lookup import MetadataLookup, apply_candidate, format_author_name, is_isbn
from .providers import BookCandidate, BookEnrichment, GoogleBooksProvider, OpenLibraryProvider, openlibrary_cover_url

__all__ = [
    "BookCandidate",
    "BookEnrichment",
    "GoogleBooksProvider",
    "MetadataLookup",
    "OpenLibraryProvider",
    "apply_candidate",
    "format_author_name",
    "is_isbn",
    "openlibrary_cover_url",
]
