from .warehouse import Warehouse, WarehouseSection  # noqa: F401
from .daily_utilization import DailyUtilization  # noqa: F401
from .deletion_record import DeletionRecord  # noqa: F401
