# horizon/classifiers/corpus.py
"""Built-in labeled corpus for the topic classifier."""

# Labels index into DEFAULT_CATEGORIES: politics, sports, tech, entertainment.
TRAINING_CORPUS = [
    ("Election results announced today", 0),
    ("New NBA record set by LeBron", 1),
    ("Latest iPhone released", 2),
    ("Oscar nominations revealed", 3),
    ("Senate debates new bill", 0),
    ("Basketball championship game tonight", 1),
    ("New smartphone features unveiled", 2),
    ("Movie premiere red carpet", 3),
    ("Congressional hearing scheduled", 0),
    ("Football season starts", 1),
    ("Software update available", 2),
    ("Music festival lineup announced", 3),
]

# Unseen headlines, one per category, used as a smoke check after training.
PROBE_TEXTS = [
    "Senator proposes new legislation",
    "Quarterback throws touchdown",
    "New app released for download",
    "Actor wins academy award",
]
