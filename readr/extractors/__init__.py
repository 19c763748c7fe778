"""Extraction sub-package: the stages of the article extraction pipeline."""

from .cleaning import is_data_table, mark_data_tables, prep_article
from .dom import link_density
from .metadata import extract_jsonld, extract_metadata, get_article_title
from .postprocess import postprocess_content
from .preprocess import prep_document, remove_scripts, unwrap_noscript_images
from .scoring import PassState, collect_elements_to_score, score_elements
from .selection import append_siblings, select_top_candidate

__all__ = [
    "PassState",
    "append_siblings",
    "collect_elements_to_score",
    "extract_jsonld",
    "extract_metadata",
    "get_article_title",
    "is_data_table",
    "link_density",
    "mark_data_tables",
    "postprocess_content",
    "prep_article",
    "prep_document",
    "remove_scripts",
    "score_elements",
    "select_top_candidate",
    "unwrap_noscript_images",
]
