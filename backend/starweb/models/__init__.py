from .base import AuditMixin, new_id
from .auth import User, SessionToken, SecurityEvent
from .settings import AppSetting
from .fleet import Party, Account, Vehicle, Driver, Destination, PolicyOrMembership, Transaction, Trip
from .procurement import RawMaterial, UnitOfMeasure, PurchaseOrder
from .reports import Product, Report, CostReport
from .hr import Employee, AttendanceRecord, PayrollRun
from .finance import TdsCalculation, Cheque, EstimateInvoice
from .notes import Note

__all__ = [
    'AuditMixin', 'new_id',
    'User', 'SessionToken', 'SecurityEvent',
    'AppSetting',
    'Party', 'Account', 'Vehicle', 'Driver', 'Destination', 'PolicyOrMembership',
    'Transaction', 'Trip',
    'RawMaterial', 'UnitOfMeasure', 'PurchaseOrder',
    'Product', 'Report', 'CostReport',
    'Employee', 'AttendanceRecord', 'PayrollRun',
    'TdsCalculation', 'Cheque', 'EstimateInvoice',
    'Note',
]
