"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/classifier.py
Format-aware selection of the bytes that define "same content".

Two files are duplicates when the clinically meaningful payload is identical,
regardless of patient/study metadata. Which element carries that payload
depends on the SOP class, so the decision is a small ordered rule table:

    Encapsulated PDF        -> EncapsulatedDocument (0042,0011)
    Structured Report       -> ContentSequence (0040,A730)
    RT Structure Set        -> (3006,0020) + (3006,0039) + (3006,0080)
    Waveform                -> WaveformData (5400,0100)
    anything else           -> PixelData (7FE0,0010)

Rules are evaluated in order and the first match wins.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from dicomdedup.core.interfaces import FormatClassifier, ParsedDataset
from dicomdedup.core.models import Classification, DocumentKind

logger = logging.getLogger(__name__)


class SopClass:
    """SOP Class UIDs (and UID prefixes) the classifier distinguishes."""
    ENCAPSULATED_PDF = "1.2.840.10008.5.1.4.1.1.104.1"
    STRUCTURED_REPORT_PREFIX = "1.2.840.10008.5.1.4.1.1.88."
    RT_STRUCTURE_SET = "1.2.840.10008.5.1.4.1.1.481.3"
    WAVEFORM_PREFIX = "1.2.840.10008.5.1.4.1.1.9.1."


class DicomTag:
    """Element tags as (group << 16) | element."""
    SOP_CLASS_UID = 0x00080016
    PIXEL_DATA = 0x7FE00010
    ENCAPSULATED_DOCUMENT = 0x00420011
    CONTENT_SEQUENCE = 0x0040A730
    STRUCTURE_SET_ROI_SEQUENCE = 0x30060020
    ROI_CONTOUR_SEQUENCE = 0x30060039
    RT_ROI_OBSERVATIONS_SEQUENCE = 0x30060080
    WAVEFORM_DATA = 0x54000100


@dataclass(frozen=True)
class ClassificationRule:
    """
    One row of the classification table.

    Attributes:
        kind: Document kind reported for matching files
        matches: Predicate over the SOP Class UID ("" when absent)
        tags: Elements whose bytes are concatenated, in this order
    """
    kind: DocumentKind
    matches: Callable[[str], bool]
    tags: Tuple[int, ...]


DEFAULT_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        kind=DocumentKind.ENCAPSULATED_DOCUMENT,
        matches=lambda uid: uid == SopClass.ENCAPSULATED_PDF,
        tags=(DicomTag.ENCAPSULATED_DOCUMENT,),
    ),
    ClassificationRule(
        kind=DocumentKind.STRUCTURED_REPORT,
        matches=lambda uid: uid.startswith(SopClass.STRUCTURED_REPORT_PREFIX),
        tags=(DicomTag.CONTENT_SEQUENCE,),
    ),
    ClassificationRule(
        kind=DocumentKind.STRUCTURED_THERAPY_PLAN,
        matches=lambda uid: uid == SopClass.RT_STRUCTURE_SET,
        tags=(
            DicomTag.STRUCTURE_SET_ROI_SEQUENCE,
            DicomTag.ROI_CONTOUR_SEQUENCE,
            DicomTag.RT_ROI_OBSERVATIONS_SEQUENCE,
        ),
    ),
    ClassificationRule(
        kind=DocumentKind.WAVEFORM,
        matches=lambda uid: uid.startswith(SopClass.WAVEFORM_PREFIX),
        tags=(DicomTag.WAVEFORM_DATA,),
    ),
    # Catch-all: images and every SOP class not listed above
    ClassificationRule(
        kind=DocumentKind.IMAGE_LIKE,
        matches=lambda uid: True,
        tags=(DicomTag.PIXEL_DATA,),
    ),
)


class FormatClassifierImpl(FormatClassifier):
    """Applies an ordered rule table to a decoded dataset."""

    def __init__(self, rules: Sequence[ClassificationRule] = DEFAULT_RULES):
        if not rules:
            raise ValueError("At least one classification rule is required")
        self.rules = tuple(rules)

    def rule_for(self, sop_class_uid: Optional[str]) -> ClassificationRule:
        uid = sop_class_uid or ""
        for rule in self.rules:
            if rule.matches(uid):
                return rule
        raise LookupError(f"No classification rule matches SOP class '{uid}'")

    def kind_for(self, sop_class_uid: Optional[str]) -> DocumentKind:
        """Document kind for a SOP Class UID, without looking at any payload."""
        return self.rule_for(sop_class_uid).kind

    def classify(self, dataset: ParsedDataset) -> Optional[Classification]:
        """
        Select the payload bytes of a dataset.

        Returns:
            Classification with a non-empty payload, or None when every
            element named by the matching rule is absent or empty.
        """
        sop_class_uid = dataset.string_value(DicomTag.SOP_CLASS_UID) or ""
        rule = self.rule_for(sop_class_uid)

        parts = []
        for tag in rule.tags:
            value = dataset.raw_bytes(tag)
            if value:
                parts.append(value)
            else:
                logger.debug(f"Element {tag:08X} absent or empty for SOP class '{sop_class_uid}'")

        payload = b"".join(parts)
        if not payload:
            return None
        return Classification(kind=rule.kind, payload=payload)
