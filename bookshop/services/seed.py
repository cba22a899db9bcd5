from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from bookshop.db.catalog import CatalogStore

logger = logging.getLogger(__name__)

SAMPLE_BOOKS: List[Dict[str, Any]] = [
    {
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "price": 10.99,
        "category": "Fiction",
        "isbn": "9780743273565",
        "stock": 25,
        "rating": 4.4,
        "pages": 180,
        "language": "English",
        "publisher": "Scribner",
        "publication_date": "1925-04-10",
    },
    {
        "title": "To Kill a Mockingbird",
        "author": "Harper Lee",
        "price": 12.49,
        "category": "Fiction",
        "isbn": "9780061120084",
        "stock": 30,
        "rating": 4.8,
        "pages": 336,
        "language": "English",
        "publisher": "Harper Perennial",
        "publication_date": "1960-07-11",
    },
    {
        "title": "Sapiens",
        "author": "Yuval Noah Harari",
        "price": 18.99,
        "category": "History",
        "isbn": "9780062316097",
        "stock": 15,
        "rating": 4.6,
        "pages": 464,
        "language": "English",
        "publisher": "Harper",
        "publication_date": "2015-02-10",
    },
    {
        "title": "A Brief History of Time",
        "author": "Stephen Hawking",
        "price": 14.99,
        "category": "Science",
        "isbn": "9780553380163",
        "stock": 12,
        "rating": 4.7,
        "pages": 212,
        "language": "English",
        "publisher": "Bantam",
        "publication_date": "1988-04-01",
    },
    {
        "title": "Clean Code",
        "author": "Robert C. Martin",
        "price": 33.5,
        "category": "Technology",
        "isbn": "9780132350884",
        "stock": 8,
        "rating": 4.5,
        "pages": 464,
        "language": "English",
        "publisher": "Prentice Hall",
        "publication_date": "2008-08-01",
    },
    {
        "title": "Atomic Habits",
        "author": "James Clear",
        "price": 16.2,
        "category": "Self-Help",
        "isbn": "9780735211292",
        "stock": 40,
        "rating": 4.8,
        "pages": 320,
        "language": "English",
        "publisher": "Avery",
        "publication_date": "2018-10-16",
    },
]


def seed_if_empty(catalog: CatalogStore, books: Sequence[Dict[str, Any]] = SAMPLE_BOOKS) -> int:
    """Fills an empty catalog with sample books. Returns how many were inserted."""
    if catalog.count_products() > 0:
        return 0
    for book in books:
        catalog.add_product(book)
    logger.info("Catalog seeded with %s books", len(books))
    return len(books)
