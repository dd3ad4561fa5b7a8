"""
SonoReport - Ultrasound Report Drafting Service

Drafts structured ultrasound reports with AI-assisted text, stages thyroid
nodules with K-TIRADS and explains reports to guardians.

IMPORTANT: AI drafts are suggestions. A clinician reviews every report.
"""

__version__ = "1.0.0"
__author__ = "SonoReport Team"
