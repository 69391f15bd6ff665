from shared.models.pagination import OffsetPage, OffsetParams
from shared.models.user import CurrentUser

__all__ = ["CurrentUser", "OffsetPage", "OffsetParams"]
