"""readr - pull the main article out of a cluttered web page.

Quick usage::

    from readr import extract_article

    result = extract_article(html, url="https://example.com/blog/some-post")
    if result.ok:
        print(result.article.title)
        print(result.article.text_content)

Reusable options::

    from readr import Readability, ReadabilityOptions

    options = ReadabilityOptions(char_threshold=250, keep_classes=True)
    result = Readability(html, url=url, options=options).parse()
"""

from readr.errors import DocumentTooLargeError, ReadrError
from readr.items import Article, ArticleMetadata, FailureReason
from readr.readability import Attempt, ExtractionResult, Readability, extract_article
from readr.settings import ReadabilityOptions, Strictness

__version__ = "0.1.0"
__all__ = [
    "Article",
    "ArticleMetadata",
    "Attempt",
    "DocumentTooLargeError",
    "ExtractionResult",
    "FailureReason",
    "Readability",
    "ReadabilityOptions",
    "ReadrError",
    "Strictness",
    "extract_article",
]
