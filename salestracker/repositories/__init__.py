from .inventory_repository import InventoryRepository
from .sale_repository import SaleRepository
from .employee_repository import EmployeeRepository
from .attendance_repository import AttendanceRepository
from .payroll_repository import PayrollRepository
from .store_repository import StoreRepository
from .store_sales_repository import StoreSalesRepository

__all__ = [
    "InventoryRepository",
    "SaleRepository",
    "EmployeeRepository",
    "AttendanceRepository",
    "PayrollRepository",
    "StoreRepository",
    "StoreSalesRepository",
]
