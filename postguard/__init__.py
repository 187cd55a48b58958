"""
PostGuard: Sequential Content Moderation for Blog Posts

Screens a post's title, summary and body against an ordered set of hosted
text classifiers, stopping at the first model that flags the content, and
returns the verdict together with a per-model audit report.
"""

__version__ = "0.1.0"
