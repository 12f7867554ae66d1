"""
Database storage service - All persistence used by the API layer.

Wraps an AsyncSession with the read/write operations the dashboard needs.
Methods flush but never commit; callers end the unit of work with commit()
or rollback().

Balance and portfolio caches are written with INSERT ... ON CONFLICT DO
UPDATE keyed by their unique constraints, so concurrent refreshes of the
same wallet never produce duplicate rows.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
import logging

from sqlalchemy import select, delete, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from oeconomia.models import (
    User, Wallet, Token, Portfolio, TokenBalance, StakingPosition,
    Transaction, PriceHistory, DEFAULT_HEALTH_SCORE
)
from oeconomia.services.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def dialect_insert(dialect_name: str, model):
    """
    Return a dialect-specific INSERT supporting ON CONFLICT clauses.

    Args:
        dialect_name: SQLAlchemy dialect name ("postgresql" or "sqlite")
        model: Mapped class to insert into
    """
    if dialect_name == "postgresql":
        return postgresql.insert(model)
    if dialect_name == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upserts are not supported on {dialect_name}")


class DatabaseStorage:
    """Async persistence operations for users, wallets, tokens and caches."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    def _insert(self, model):
        return dialect_insert(self.db.get_bind().dialect.name, model)

    async def _fetch_fresh(self, stmt):
        """Run a select, refreshing any instance already in the identity map."""
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    # User operations

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def create_user(self, username: str, password: str) -> User:
        """Create a user, storing only the password hash."""
        user = User(username=username, password=hash_password(password))
        self.db.add(user)
        await self.db.flush()
        return user

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return verify_password(plain_password, hashed_password)

    # Wallet operations

    async def get_wallet(self, wallet_id: str) -> Optional[Wallet]:
        return await self.db.get(Wallet, wallet_id)

    async def get_wallet_by_address(self, address: str) -> Optional[Wallet]:
        result = await self.db.execute(select(Wallet).where(Wallet.address == address))
        return result.scalar_one_or_none()

    async def get_user_wallets(self, user_id: str) -> List[Wallet]:
        result = await self.db.execute(select(Wallet).where(Wallet.user_id == user_id))
        return list(result.scalars().all())

    async def get_connected_wallets(self) -> List[Wallet]:
        result = await self.db.execute(select(Wallet).where(Wallet.is_connected.is_(True)))
        return list(result.scalars().all())

    async def create_wallet(
        self,
        address: str,
        user_id: Optional[str] = None,
        network: str = "ethereum",
        is_connected: bool = False
    ) -> Wallet:
        wallet = Wallet(
            address=address,
            user_id=user_id,
            network=network,
            is_connected=is_connected
        )
        self.db.add(wallet)
        await self.db.flush()
        return wallet

    async def update_wallet(self, wallet_id: str, **updates: Any) -> Optional[Wallet]:
        wallet = await self.get_wallet(wallet_id)
        if wallet is None:
            return None
        for field_name, value in updates.items():
            setattr(wallet, field_name, value)
        wallet.updated_at = datetime.utcnow()
        await self.db.flush()
        return wallet

    async def delete_wallet(self, address: str) -> bool:
        """
        Delete a wallet and everything recorded for it.

        Dependent rows are removed explicitly so the behaviour does not rely
        on the database enforcing ON DELETE CASCADE.

        Returns:
            True if a wallet was deleted, False if none matched
        """
        wallet = await self.get_wallet_by_address(address)
        if wallet is None:
            return False

        for model in (Portfolio, TokenBalance, StakingPosition, Transaction):
            await self.db.execute(delete(model).where(model.wallet_id == wallet.id))

        await self.db.delete(wallet)
        await self.db.flush()
        logger.info(f"Deleted wallet {address} and its dependent records")
        return True

    # Token operations

    async def get_token(self, token_id: str) -> Optional[Token]:
        return await self.db.get(Token, token_id)

    async def get_token_by_symbol(self, symbol: str) -> Optional[Token]:
        result = await self.db.execute(select(Token).where(Token.symbol == symbol.upper()))
        return result.scalar_one_or_none()

    async def get_all_tokens(self) -> List[Token]:
        result = await self.db.execute(select(Token).order_by(Token.created_at, Token.symbol))
        return list(result.scalars().all())

    async def create_token(self, **fields: Any) -> Token:
        token = Token(**fields)
        self.db.add(token)
        await self.db.flush()
        return token

    # Portfolio operations

    async def get_portfolio(self, wallet_id: str) -> Optional[Portfolio]:
        result = await self.db.execute(select(Portfolio).where(Portfolio.wallet_id == wallet_id))
        return result.scalar_one_or_none()

    async def create_portfolio(self, wallet_id: str, **fields: Any) -> Portfolio:
        portfolio = Portfolio(wallet_id=wallet_id, **fields)
        self.db.add(portfolio)
        await self.db.flush()
        return portfolio

    async def update_portfolio(self, wallet_id: str, **updates: Any) -> Optional[Portfolio]:
        portfolio = await self.get_portfolio(wallet_id)
        if portfolio is None:
            return None
        for field_name, value in updates.items():
            setattr(portfolio, field_name, value)
        portfolio.last_updated = datetime.utcnow()
        await self.db.flush()
        return portfolio

    async def upsert_portfolio(
        self,
        wallet_id: str,
        net_worth: Decimal,
        health_score: str = DEFAULT_HEALTH_SCORE,
        total_trades: int = 0,
        pnl: Decimal = Decimal("0"),
        pnl_percentage: Decimal = Decimal("0")
    ) -> Portfolio:
        """Insert or overwrite the cached summary of a wallet."""
        now = datetime.utcnow()
        values = {
            "net_worth": net_worth,
            "pnl": pnl,
            "pnl_percentage": pnl_percentage,
            "total_trades": total_trades,
            "health_score": health_score,
            "last_updated": now,
        }
        stmt = self._insert(Portfolio).values(wallet_id=wallet_id, **values)
        stmt = stmt.on_conflict_do_update(index_elements=["wallet_id"], set_=values)
        await self.db.execute(stmt)

        return await self._fetch_fresh(select(Portfolio).where(Portfolio.wallet_id == wallet_id))

    # Token balance operations

    async def get_token_balances(self, wallet_id: str) -> List[TokenBalance]:
        result = await self.db.execute(
            select(TokenBalance).where(TokenBalance.wallet_id == wallet_id)
        )
        return list(result.scalars().all())

    async def get_token_balance(self, wallet_id: str, token_id: str) -> Optional[TokenBalance]:
        result = await self.db.execute(
            select(TokenBalance).where(
                TokenBalance.wallet_id == wallet_id,
                TokenBalance.token_id == token_id
            )
        )
        return result.scalar_one_or_none()

    async def upsert_token_balance(
        self,
        wallet_id: str,
        token_id: str,
        balance: Decimal,
        usd_value: Decimal = Decimal("0")
    ) -> TokenBalance:
        """Insert or overwrite the balance of one token in one wallet."""
        values = {
            "balance": balance,
            "usd_value": usd_value,
            "last_updated": datetime.utcnow(),
        }
        stmt = self._insert(TokenBalance).values(wallet_id=wallet_id, token_id=token_id, **values)
        stmt = stmt.on_conflict_do_update(index_elements=["wallet_id", "token_id"], set_=values)
        await self.db.execute(stmt)

        return await self._fetch_fresh(
            select(TokenBalance).where(
                TokenBalance.wallet_id == wallet_id,
                TokenBalance.token_id == token_id
            )
        )

    # Staking operations

    async def get_staking_positions(self, wallet_id: str) -> List[StakingPosition]:
        result = await self.db.execute(
            select(StakingPosition).where(StakingPosition.wallet_id == wallet_id)
        )
        return list(result.scalars().all())

    async def get_active_staking_positions(self, wallet_id: str) -> List[StakingPosition]:
        result = await self.db.execute(
            select(StakingPosition).where(
                StakingPosition.wallet_id == wallet_id,
                StakingPosition.is_active.is_(True)
            )
        )
        return list(result.scalars().all())

    async def create_staking_position(self, **fields: Any) -> StakingPosition:
        position = StakingPosition(**fields)
        self.db.add(position)
        await self.db.flush()
        return position

    async def update_staking_position(self, position_id: str, **updates: Any) -> Optional[StakingPosition]:
        position = await self.db.get(StakingPosition, position_id)
        if position is None:
            return None
        for field_name, value in updates.items():
            setattr(position, field_name, value)
        position.updated_at = datetime.utcnow()
        await self.db.flush()
        return position

    # Transaction operations

    async def get_transactions(self, wallet_id: str, limit: int = 50) -> List[Transaction]:
        """Most recent transactions of a wallet, newest first."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.wallet_id == wallet_id)
            .order_by(Transaction.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_transactions(self, wallet_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Transaction).where(Transaction.wallet_id == wallet_id)
        )
        return result.scalar() or 0

    async def get_transaction(self, tx_hash: str) -> Optional[Transaction]:
        result = await self.db.execute(select(Transaction).where(Transaction.tx_hash == tx_hash))
        return result.scalar_one_or_none()

    async def create_transaction(self, **fields: Any) -> Transaction:
        transaction = Transaction(**fields)
        self.db.add(transaction)
        await self.db.flush()
        return transaction

    # Price history operations

    async def get_latest_price(self, token_id: str) -> Optional[PriceHistory]:
        result = await self.db.execute(
            select(PriceHistory)
            .where(PriceHistory.token_id == token_id)
            .order_by(PriceHistory.timestamp.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_price_history(self, token_id: str, limit: int = 100) -> List[PriceHistory]:
        """Stored prices of a token, newest first."""
        result = await self.db.execute(
            select(PriceHistory)
            .where(PriceHistory.token_id == token_id)
            .order_by(PriceHistory.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create_price_history(self, **fields: Any) -> PriceHistory:
        price = PriceHistory(**fields)
        self.db.add(price)
        await self.db.flush()
        return price

    async def record_price(
        self,
        token_id: str,
        price: Decimal,
        timestamp: datetime,
        market_cap: Optional[Decimal] = None,
        volume_24h: Optional[Decimal] = None
    ) -> bool:
        """
        Record a price observation, ignoring duplicates for (token, timestamp).

        Returns:
            True if a row was inserted, False if it already existed
        """
        stmt = self._insert(PriceHistory).values(
            token_id=token_id,
            price=price,
            market_cap=market_cap,
            volume_24h=volume_24h,
            timestamp=timestamp
        ).on_conflict_do_nothing(index_elements=["token_id", "timestamp"])
        result = await self.db.execute(stmt)
        return result.rowcount > 0
