"""ghostdraft - publish Markdown articles as Ghost drafts.

Local images referenced by the article, or by its ``feature_image``
metadata, are uploaded to Ghost first and rewritten to their remote URLs.
"""

__version__ = "0.1.0"
