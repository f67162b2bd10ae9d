# Domain Content Package
from .models import ErrorCatalog, ErrorType, StudyPhase
from .ports import ContentSource

__all__ = ["StudyPhase", "ErrorType", "ErrorCatalog", "ContentSource"]
