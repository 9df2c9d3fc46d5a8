"""
Assessment Delivery Engine

Delivers sectioned, timed assessments to students: question sequencing,
per-type answer editors, navigation, a countdown that forces submission at
expiry, and an exactly-once submission pipeline, served over a FastAPI API.
"""

__version__ = "0.1.0"
