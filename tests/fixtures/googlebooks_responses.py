# ABOUTME: Canned Google Books API response fixtures for testing.
# ABOUTME: Provides realistic JSON dicts matching the volumes endpoint shape.

VOLUMES_RESPONSE = {
    "kind": "books#volumes",
    "totalItems": 1,
    "items": [
        {
            "kind": "books#volume",
            "id": "B1hSG45JCX4C",
            "volumeInfo": {
                "title": "Dune",
                "authors": ["Frank Herbert"],
                "publisher": "Penguin",
                "publishedDate": "2005-08-02",
                "description": "Melange, or 'spice', is the most valuable substance in the universe.",
                "pageCount": 896,
                "categories": ["Fiction", "Science Fiction"],
                "imageLinks": {
                    "smallThumbnail": "http://books.google.com/books/content?id=B1hSG45JCX4C&zoom=5",
                    "thumbnail": "http://books.google.com/books/content?id=B1hSG45JCX4C&zoom=1",
                },
                "language": "en",
            },
        },
    ],
}

VOLUMES_RESPONSE_SUBTITLE = {
    "totalItems": 1,
    "items": [
        {
            "volumeInfo": {
                "title": "We Are Legion",
                "subtitle": "(We Are Bob)",
                "authors": ["Dennis E. Taylor"],
            },
        },
    ],
}

VOLUMES_RESPONSE_EMPTY = {
    "kind": "books#volumes",
    "totalItems": 0,
}
