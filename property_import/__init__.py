"""Instagram property import pipeline.

Turns scraped Instagram captions into normalized property listings,
screens them for duplicates and persists them with job bookkeeping.
"""

__version__ = "0.1.0"
