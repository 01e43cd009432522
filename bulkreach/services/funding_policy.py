"""
Funding policies — how an account pays for points it spends.

An account is either:

  Metered    every point spent comes off the balance; spending is capped
             by what the balance holds
  Unmetered  points are never consumed (admin accounts); the balance is
             reported but left as it is

The policy is chosen once per operation from the account's role by
policy_for(). Callers then ask the policy two questions:

  fundable(n)  how many of n requested points can be honoured
  charge(n)    the balance left after spending n of them
"""

from dataclasses import dataclass

from bulkreach.models.ledger_account import AccountRole, LedgerAccount


@dataclass(frozen=True)
class Metered:
    balance: int

    @property
    def consumes_balance(self) -> bool:
        return True

    def fundable(self, requested: int) -> int:
        return min(requested, max(self.balance, 0))

    def charge(self, funded: int) -> int:
        return self.balance - funded


@dataclass(frozen=True)
class Unmetered:
    balance: int

    @property
    def consumes_balance(self) -> bool:
        return False

    def fundable(self, requested: int) -> int:
        return requested

    def charge(self, funded: int) -> int:
        return self.balance


FundingPolicy = Metered | Unmetered


def policy_for(account: LedgerAccount) -> FundingPolicy:
    """Admin accounts fund without limit regardless of their balance value."""
    if account.role == AccountRole.ADMIN:
        return Unmetered(balance=account.balance)
    return Metered(balance=account.balance)
