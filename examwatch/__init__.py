"""
examwatch – scraper for the Bavarian fishing exam booking portal.

Collects the exam appointment listing, enriches every appointment with its
detail page (one isolated portal session per appointment) and writes a
deterministic JSON snapshot.
"""

__version__ = "0.1.0"
