"""
Shared fixtures for dicomdedup tests.
Creates isolated directory trees with real DICOM Part-10 files written by pydicom.
"""
import pytest
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional
import sys

from pydicom.dataset import Dataset, FileDataset, FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, ImplicitVRLittleEndian, generate_uid

# Add src/ to sys.path so 'dicomdedup' is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

CT_IMAGE = "1.2.840.10008.5.1.4.1.1.2"
ENCAPSULATED_PDF = "1.2.840.10008.5.1.4.1.1.104.1"
BASIC_TEXT_SR = "1.2.840.10008.5.1.4.1.1.88.11"
RT_STRUCTURE_SET = "1.2.840.10008.5.1.4.1.1.481.3"
TWELVE_LEAD_ECG = "1.2.840.10008.5.1.4.1.1.9.1.1"

PIXELS_A = bytes(range(256)) * 4
PIXELS_B = bytes(reversed(range(256))) * 4


def _even(data: bytes) -> bytes:
    """DICOM values have even length; pad like a writer would."""
    return data if len(data) % 2 == 0 else data + b"\0"


def text_item(text: str) -> Dataset:
    item = Dataset()
    item.RelationshipType = "CONTAINS"
    item.ValueType = "TEXT"
    item.TextValue = text
    return item


def roi_item(number: int, name: str) -> Dataset:
    item = Dataset()
    item.ROINumber = number
    item.ROIName = name
    return item


def contour_item(number: int) -> Dataset:
    item = Dataset()
    item.ReferencedROINumber = number
    return item


def observation_item(number: int) -> Dataset:
    item = Dataset()
    item.ObservationNumber = number
    item.ReferencedROINumber = number
    return item


def write_dicom(
        path: Path,
        sop_class_uid: str = CT_IMAGE,
        patient_id: str = "PAT-001",
        pixel_data: Optional[bytes] = PIXELS_A,
        encapsulated_document: Optional[bytes] = None,
        waveform_data: Optional[bytes] = None,
        content: Optional[Iterable[Dataset]] = None,
        structure_set_rois: Optional[Iterable[Dataset]] = None,
        roi_contours: Optional[Iterable[Dataset]] = None,
        roi_observations: Optional[Iterable[Dataset]] = None,
        undefined_length_sequences: bool = False,
        document_title: Optional[str] = None,
        implicit_vr: bool = False,
) -> Path:
    """Writes a minimal but valid DICOM Part-10 file and returns its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    meta = FileMetaDataset()
    meta.MediaStorageSOPClassUID = sop_class_uid
    meta.MediaStorageSOPInstanceUID = generate_uid()
    meta.TransferSyntaxUID = ImplicitVRLittleEndian if implicit_vr else ExplicitVRLittleEndian

    ds = FileDataset(
        str(path), {}, file_meta=meta, preamble=b"\0" * 128,
        is_implicit_VR=implicit_vr, is_little_endian=True
    )
    ds.SOPClassUID = sop_class_uid
    ds.SOPInstanceUID = meta.MediaStorageSOPInstanceUID
    ds.PatientID = patient_id

    sequences = (
        ("ContentSequence", content),
        ("StructureSetROISequence", structure_set_rois),
        ("ROIContourSequence", roi_contours),
        ("RTROIObservationsSequence", roi_observations),
    )
    for keyword, items in sequences:
        if items is not None:
            setattr(ds, keyword, list(items))
            if undefined_length_sequences:
                ds[keyword].is_undefined_length = True

    if document_title is not None:
        ds.DocumentTitle = document_title
    if encapsulated_document is not None:
        ds.add_new(0x00420011, "OB", _even(encapsulated_document))
    if waveform_data is not None:
        ds.add_new(0x54000100, "OB", _even(waveform_data))
    if pixel_data is not None:
        ds.add_new(0x7FE00010, "OB", _even(pixel_data))

    ds.save_as(str(path), enforce_file_format=True)
    return path


@pytest.fixture
def make_dicom() -> Callable[..., Path]:
    """Factory fixture: make_dicom(path, **elements) writes a DICOM file."""
    return write_dicom


@pytest.fixture
def dicom_tree(tmp_path) -> Dict[str, Path]:
    """
    Creates a small archive:
    - 2 CT images with identical pixels but different PatientID (duplicates)
    - 1 CT image with different pixels (unique)
    - 1 copy of the first image in a subdirectory (duplicate)
    - 1 text file with .dcm extension (not DICOM)
    - 1 hidden DICOM file (never scanned)
    - 1 DICOM file with .img extension (only found in deep mode)
    """
    root = tmp_path / "archive"
    files = {
        "ct_a": write_dicom(root / "ct_a.dcm", patient_id="PAT-001", pixel_data=PIXELS_A),
        "ct_a_other_patient": write_dicom(root / "ct_a_copy", patient_id="PAT-999", pixel_data=PIXELS_A),
        "ct_b": write_dicom(root / "ct_b.DCM", pixel_data=PIXELS_B),
        "ct_a_nested": write_dicom(root / "series" / "img1.dicom", pixel_data=PIXELS_A),
        "hidden": write_dicom(root / ".hidden.dcm", pixel_data=PIXELS_A),
        "other_extension": write_dicom(root / "series" / "img2.img", pixel_data=PIXELS_A),
    }
    files["text"] = root / "notes.dcm"
    files["text"].write_text("not a dicom file")
    files["root"] = root
    return files
