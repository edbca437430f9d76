"""
Database tables of the remote backend.
"""

from .inventory import InventoryModel
from .sale import SaleModel
from .store import StoreModel
from .employee import EmployeeModel
from .attendance import AttendanceModel
from .payroll import WeeklyPaymentModel, WeeklyDeductionModel
from .store_sales import StoreDailySaleModel, StoreMonthlyExpensesModel

__all__ = [
    "InventoryModel",
    "SaleModel",
    "StoreModel",
    "EmployeeModel",
    "AttendanceModel",
    "WeeklyPaymentModel",
    "WeeklyDeductionModel",
    "StoreDailySaleModel",
    "StoreMonthlyExpensesModel",
]
