from .model import Concept, Label, RelationKind, Triple
from .graph import BuildReport, ConceptGraph
from .labels import LabelIndex, LabelMatch, normalize_label

__all__ = [
    "Concept",
    "Label",
    "RelationKind",
    "Triple",
    "BuildReport",
    "ConceptGraph",
    "LabelIndex",
    "LabelMatch",
    "normalize_label",
]
