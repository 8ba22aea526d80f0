from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, List, Dict, Any
from core.entities.finance import BankAccount, CostCenter, Category
from core.entities.transaction import Transaction


class FinanceRepository(ABC):
    # bank accounts
    @abstractmethod
    def list_bank_accounts(self, organization_id: int) -> List[BankAccount]:...

    @abstractmethod
    def get_bank_account(self, organization_id: int, account_id: int) -> Optional[BankAccount]:...

    @abstractmethod
    def create_bank_account(self, account: BankAccount) -> BankAccount:...

    @abstractmethod
    def update_bank_account(self, organization_id: int, account_id: int,
                            fields: Dict[str, Any]) -> Optional[BankAccount]:...

    @abstractmethod
    def clear_default_bank_account(self, organization_id: int, keep_id: Optional[int] = None) -> None:...

    @abstractmethod
    def set_bank_account_balance(self, organization_id: int, account_id: int, balance: Decimal) -> None:...

    # cost centers
    @abstractmethod
    def list_cost_centers(self, organization_id: int) -> List[CostCenter]:...

    @abstractmethod
    def get_cost_center(self, organization_id: int, cost_center_id: int) -> Optional[CostCenter]:...

    @abstractmethod
    def get_cost_center_by_name(self, organization_id: int, name: str) -> Optional[CostCenter]:...

    @abstractmethod
    def create_cost_center(self, cost_center: CostCenter) -> CostCenter:...

    @abstractmethod
    def update_cost_center(self, organization_id: int, cost_center_id: int,
                           fields: Dict[str, Any]) -> Optional[CostCenter]:...

    @abstractmethod
    def delete_cost_center(self, organization_id: int, cost_center_id: int) -> bool:...

    # categories
    @abstractmethod
    def list_categories(self, organization_id: int, cost_center_id: Optional[int] = None) -> List[Category]:...

    @abstractmethod
    def get_category(self, organization_id: int, category_id: int) -> Optional[Category]:...

    @abstractmethod
    def get_category_by_name(self, organization_id: int, name: str) -> Optional[Category]:...

    @abstractmethod
    def count_categories_for_cost_center(self, organization_id: int, cost_center_id: int) -> int:...

    @abstractmethod
    def create_category(self, category: Category) -> Category:...

    @abstractmethod
    def update_category(self, organization_id: int, category_id: int,
                        fields: Dict[str, Any]) -> Optional[Category]:...

    @abstractmethod
    def delete_category(self, organization_id: int, category_id: int) -> bool:...

    # transactions
    @abstractmethod
    def list_transactions(self, organization_id: int, type: Optional[str] = None,
                          status: Optional[str] = None, trip_id: Optional[int] = None,
                          limit: int = 500, offset: int = 0) -> List[Transaction]:...

    @abstractmethod
    def get_transaction(self, organization_id: int, transaction_id: int) -> Optional[Transaction]:...

    @abstractmethod
    def create_transaction(self, transaction: Transaction) -> Transaction:...

    @abstractmethod
    def update_transaction(self, organization_id: int, transaction_id: int,
                           fields: Dict[str, Any]) -> Optional[Transaction]:...

    @abstractmethod
    def delete_transaction(self, organization_id: int, transaction_id: int) -> Optional[Transaction]:...

    @abstractmethod
    def list_paid_transactions_for_account(self, organization_id: int, account_id: int) -> List[Transaction]:...

    @abstractmethod
    def list_transactions_for_reservations(self, organization_id: int,
                                           reservation_ids: List[int]) -> List[Transaction]:...

    @abstractmethod
    def list_transactions_for_maintenance(self, organization_id: int, maintenance_id: int) -> List[Transaction]:...

    @abstractmethod
    def list_transactions_for_parcel(self, organization_id: int, parcel_id: int) -> List[Transaction]:...

    @abstractmethod
    def list_transactions_for_charter(self, organization_id: int, charter_id: int) -> List[Transaction]:...
