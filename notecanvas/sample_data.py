"""Demo tree loaded when the application starts."""

SAMPLE_TREE = {
    "id": 1,
    "label": "today",
    "x": 100,
    "y": 100,
    "children": [
        {
            "id": 2,
            "label": "study",
            "x": 300,
            "y": 40,
            "children": [
                {"id": 5, "label": "js", "x": 500, "y": 40},
                {"id": 6, "label": "project", "x": 500, "y": 100},
            ],
        },
        {"id": 3, "label": "game", "x": 300, "y": 100},
        {
            "id": 4,
            "label": "code",
            "x": 300,
            "y": 200,
            "children": [
                {"id": 7, "label": "work", "x": 500, "y": 200},
            ],
        },
    ],
}
