from .source import ThesaurusDocument, read_source

__all__ = ["ThesaurusDocument", "read_source"]
