"""External collaborators - fungible balances and NFT custody."""

from __future__ import annotations
from typing import Optional, Protocol

from bear_river.errors import PreconditionViolation


class FungibleLedger(Protocol):
    """Balances of the reward token (fish)."""

    def mint(self, account: str, amount: int) -> None: ...

    def burn(self, account: str, amount: int) -> None: ...

    def balance_of(self, account: str) -> int: ...


class NFTCustody(Protocol):
    """Custody of legacy bear NFTs."""

    def owner_of(self, token_id: int) -> Optional[str]: ...

    def transfer_in(self, account: str, token_id: int) -> None: ...


class InMemoryFungibleLedger:
    """Fish balances kept in a dict."""

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self.total_supply: int = 0

    def mint(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot mint a negative amount")
        self._balances[account] = self._balances.get(account, 0) + amount
        self.total_supply += amount

    def burn(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot burn a negative amount")
        balance = self._balances.get(account, 0)
        if balance < amount:
            raise PreconditionViolation(
                f"Insufficient balance: {account} holds {balance}, needs {amount}"
            )
        self._balances[account] = balance - amount
        self.total_supply -= amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def export_balances(self) -> dict[str, int]:
        """Export balances for serialization."""
        return dict(self._balances)

    def import_balances(self, balances: dict[str, int]) -> None:
        """Import balances from serialized data."""
        self._balances = {account: int(amount) for account, amount in balances.items()}
        self.total_supply = sum(self._balances.values())


class InMemoryNFTCustody:
    """Bear NFT ownership kept in a dict. Staked tokens belong to CUSTODIAN."""

    CUSTODIAN = "river"

    def __init__(self) -> None:
        self._owners: dict[int, str] = {}
        self._next_id: int = 1  # Sequential token ids

    def mint(self, account: str, count: int = 1) -> list[int]:
        """Issue new bear NFTs to an account. Returns their ids."""
        token_ids = []
        for _ in range(count):
            token_id = self._next_id
            self._next_id += 1
            self._owners[token_id] = account
            token_ids.append(token_id)
        return token_ids

    def owner_of(self, token_id: int) -> Optional[str]:
        return self._owners.get(token_id)

    def tokens_of(self, account: str) -> list[int]:
        """All token ids an account holds."""
        return sorted(t for t, owner in self._owners.items() if owner == account)

    def transfer_in(self, account: str, token_id: int) -> None:
        owner = self._owners.get(token_id)
        if owner != account:
            raise PreconditionViolation(f"Token {token_id} is not owned by {account}")
        self._owners[token_id] = self.CUSTODIAN

    def export_owners(self) -> dict[str, str]:
        """Export ownership for serialization (JSON keys are strings)."""
        return {str(token_id): owner for token_id, owner in self._owners.items()}

    def import_owners(self, owners: dict[str, str]) -> None:
        """Import ownership from serialized data."""
        self._owners = {int(token_id): owner for token_id, owner in owners.items()}
        self._next_id = max(self._owners, default=0) + 1


class Minter(Protocol):
    """Anything rewards can be minted through."""

    def mint(self, account: str, amount: int) -> None: ...


class PendingMints:
    """Queues mints until the surrounding operation commits."""

    def __init__(self, target: Minter):
        self.target = target
        self._queue: list[tuple[str, int]] = []

    def mint(self, account: str, amount: int) -> None:
        self._queue.append((account, amount))

    def pending(self) -> int:
        """Total amount waiting to be minted."""
        return sum(amount for _, amount in self._queue)

    def flush(self) -> None:
        """Mint everything queued."""
        queue, self._queue = self._queue, []
        for account, amount in queue:
            self.target.mint(account, amount)

    def discard(self) -> None:
        """Drop everything queued."""
        self._queue.clear()
