"""SQLAlchemy 모델 패키지 — Alembic이 모든 모델을 인식할 수 있도록 일괄 import"""

from qscan.models.base import Base
from qscan.models.integration import Integration
from qscan.models.provider_token import ProviderToken
from qscan.models.report import CBOMReport, VDRReport
from qscan.models.repository import Repository
from qscan.models.scan import Scan
from qscan.models.vulnerability import Vulnerability

__all__ = [
    "Base",
    "Repository",
    "Scan",
    "Vulnerability",
    "CBOMReport",
    "VDRReport",
    "Integration",
    "ProviderToken",
]
