from .account_index import AccountIndex
from .cash import CashValue, LinearValueLeakWarning, destroy_zero, extract, merge
from .ledger import Ledger
from .locks import KeyedLocks, account_key, supply_key
from .models import SubAccount, SubAccountView, Supply
from .policy import U64_MAX, LedgerPolicy
from .supply import SupplyTracker

__all__ = [
    "AccountIndex",
    "CashValue",
    "KeyedLocks",
    "Ledger",
    "LedgerPolicy",
    "LinearValueLeakWarning",
    "SubAccount",
    "SubAccountView",
    "Supply",
    "SupplyTracker",
    "U64_MAX",
    "account_key",
    "destroy_zero",
    "extract",
    "merge",
    "supply_key",
]
