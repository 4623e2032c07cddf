from .thesaurus import ThesaurusService, ThesaurusSnapshot, load_thesaurus

__all__ = ["ThesaurusService", "ThesaurusSnapshot", "load_thesaurus"]
