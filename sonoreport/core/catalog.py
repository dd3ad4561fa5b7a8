"""
Ultrasound exam type catalog.

Each exam type carries a display label, a normal-findings template that
clinicians start from, and the matching default impression.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ExamType:
    key: str
    label: str
    normal_findings: str
    default_impression: str


EXAM_TYPES: Tuple[ExamType, ...] = (
    ExamType(
        key="abdominal",
        label="Abdominal ultrasound",
        normal_findings=(
            "Liver normal in size and echogenicity without focal lesion. "
            "Gallbladder unremarkable; no stone or wall thickening. "
            "Intra/extrahepatic bile ducts not dilated. Pancreas and spleen unremarkable. "
            "Both kidneys normal in size without hydronephrosis. "
            "Urinary bladder unremarkable. No ascites."
        ),
        default_impression="Unremarkable abdominal ultrasound.",
    ),
    ExamType(
        key="liver",
        label="Liver ultrasound",
        normal_findings=(
            "Liver normal in size and echogenicity without focal lesion. "
            "Portal/hepatic veins patent. Gallbladder unremarkable. "
            "Intra/extrahepatic bile ducts not dilated. No perihepatic fluid."
        ),
        default_impression="Unremarkable liver ultrasound.",
    ),
    ExamType(
        key="small_large_bowel",
        label="Small and large bowel ultrasound",
        normal_findings=(
            "No abnormal bowel wall thickening. No pathologic hyperemia. "
            "No intussusception identified. Appendix not visualized or appears within "
            "normal limits when seen. No free fluid. "
            "No significant mesenteric lymphadenopathy."
        ),
        default_impression="No sonographic evidence of acute inflammatory bowel process on this exam.",
    ),
    ExamType(
        key="limited",
        label="Limited ultrasound",
        normal_findings=(
            "Targeted ultrasound of the requested area demonstrates no focal fluid "
            "collection or discrete mass. No abnormal hyperemia. "
            "Findings are within expected limits for the limited exam."
        ),
        default_impression="No focal abnormality identified on this limited ultrasound exam.",
    ),
    ExamType(
        key="neonate_spine",
        label="Neonatal spine ultrasound",
        normal_findings=(
            "Conus medullaris terminates at an appropriate level. Filum terminale not "
            "thickened. Central canal not dilated. No intraspinal mass or dermal sinus "
            "tract. No evidence of tethering on this exam."
        ),
        default_impression="No sonographic evidence of spinal dysraphism or tethered cord on this exam.",
    ),
    ExamType(
        key="neonate_brain",
        label="Neonatal brain ultrasound",
        normal_findings=(
            "Ventricular size within normal limits. No germinal matrix/intraventricular "
            "hemorrhage. No periventricular echogenicity to suggest leukomalacia. "
            "Midline structures are intact. No extra-axial fluid collection."
        ),
        default_impression="No sonographic evidence of intracranial hemorrhage or ventriculomegaly on this exam.",
    ),
    ExamType(
        key="neck",
        label="Neck ultrasound",
        normal_findings=(
            "No suspicious cervical mass. Thyroid bed and major salivary glands appear "
            "unremarkable on this limited neck assessment. No pathologic "
            "lymphadenopathy. No focal fluid collection."
        ),
        default_impression="No focal neck abnormality identified on this exam.",
    ),
    ExamType(
        key="thyroid",
        label="Thyroid ultrasound",
        normal_findings=(
            "Thyroid gland normal in size and echotexture. No discrete thyroid nodule. "
            "No suspicious cervical lymphadenopathy."
        ),
        default_impression="Unremarkable thyroid ultrasound.",
    ),
    ExamType(
        key="female_pelvis",
        label="Female pelvic (ovary, uterus) ultrasound",
        normal_findings=(
            "Uterus and ovaries demonstrate age-appropriate appearance. No adnexal mass. "
            "No sonographic evidence of torsion. No free pelvic fluid."
        ),
        default_impression="Unremarkable pelvic ultrasound.",
    ),
    ExamType(
        key="adrenal_kidney_bladder",
        label="Adrenal, kidney and bladder ultrasound",
        normal_findings=(
            "Adrenal glands without focal mass. Both kidneys normal in size without "
            "hydronephrosis. No focal renal lesion. Urinary bladder unremarkable without "
            "wall thickening or debris."
        ),
        default_impression="Unremarkable adrenal, renal, and bladder ultrasound.",
    ),
    ExamType(
        key="ihps",
        label="IHPS ultrasound",
        normal_findings=(
            "Pylorus without abnormal muscle thickening or elongation. Gastric contents "
            "pass through the pyloric channel during the exam. No secondary signs of "
            "gastric outlet obstruction."
        ),
        default_impression="No sonographic evidence of hypertrophic pyloric stenosis.",
    ),
)

_EXAM_TYPES_BY_KEY = {exam.key: exam for exam in EXAM_TYPES}


def get_exam_type(key: Optional[str]) -> Optional[ExamType]:
    """Look up an exam type by its catalog key."""
    if not key:
        return None
    return _EXAM_TYPES_BY_KEY.get(key.strip().lower())


def describe_exam_type(value: Optional[str]) -> str:
    """
    Text used to tell the drafting model which exam was performed.

    Catalog keys expand to their label; free text passes through trimmed.
    """
    exam = get_exam_type(value)
    if exam is not None:
        return exam.label
    return (value or "").strip()
