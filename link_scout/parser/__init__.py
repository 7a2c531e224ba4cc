"""link_scout.parser: извлечение ссылок из документов."""

from link_scout.parser.markdown_parser import ExtractionError, extract_from_file, extract_urls

__all__ = ["ExtractionError", "extract_from_file", "extract_urls"]
