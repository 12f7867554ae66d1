"""
Blockchain API endpoints for the Oeconomia dashboard.

This module provides REST API endpoints for:
- Token prices and stored price history
- Live wallet balances
- Portfolio metrics and health score
- Transaction history and staking positions
- Wallet connection management
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List
import asyncio
import logging

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from oeconomia.config import Settings
from oeconomia.dependencies import get_settings, get_price_service, get_ethereum_service, get_storage
from oeconomia.models import Token
from oeconomia.schemas import (
    WalletAddressRequest,
    WalletConnectRequest,
    WalletDisconnectRequest,
    WalletResponse,
    WalletConnectResponse,
    WalletDisconnectResponse,
    TokenPriceResponse,
    PriceHistoryEntry,
    PriceHistoryResponse,
    TokenBalanceEntry,
    BalancesResponse,
    TokenAllocationResponse,
    PortfolioResponse,
    TransactionResponse,
    TransactionsResponse,
    StakingTokenInfo,
    StakingPositionResponse,
    StakingResponse,
)
from oeconomia.services.coingecko import CoinGeckoService
from oeconomia.services.ethereum import EthereumService
from oeconomia.services.market_data import (
    fetch_token_prices,
    fetch_wallet_balances,
    format_decimal,
    usd_value_of,
)
from oeconomia.services.portfolio_aggregator import (
    InvalidInputError,
    TokenHolding,
    compute_metrics,
    classify_health,
)
from oeconomia.services.storage import DatabaseStorage

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/blockchain", tags=["blockchain"])


def _invalid_address() -> HTTPException:
    return HTTPException(status_code=400, detail="Invalid Ethereum address")


def _tokens_by_id(tokens: List[Token]) -> Dict[str, Token]:
    return {token.id: token for token in tokens}


@router.get("/prices", response_model=Dict[str, TokenPriceResponse])
async def get_token_prices(
    storage: DatabaseStorage = Depends(get_storage),
    price_service: CoinGeckoService = Depends(get_price_service),
    settings: Settings = Depends(get_settings)
):
    """
    Get the current USD price and 24h change of every tracked token.

    Tokens without a quote are reported with price 0. Every quote received
    is also recorded in the price history.
    """
    try:
        tokens = await storage.get_all_tokens()
        quotes = await asyncio.to_thread(
            fetch_token_prices, price_service, tokens, settings.token_coingecko_ids
        )

        now = datetime.utcnow()
        prices: Dict[str, TokenPriceResponse] = {}
        for token in tokens:
            quote = quotes.get(token.id)
            prices[token.symbol] = TokenPriceResponse(
                symbol=token.symbol,
                name=token.name,
                price=quote["usd"] if quote else 0.0,
                change_24h=quote["usd_24h_change"] if quote else 0.0,
                last_updated=now
            )

        try:
            for token in tokens:
                quote = quotes.get(token.id)
                if quote:
                    await storage.record_price(token.id, Decimal(str(quote["usd"])), now)
            await storage.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to record price history: {e}")
            await storage.rollback()

        return prices

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching token prices: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch token prices: {str(e)}")


@router.get("/prices/{symbol}/history", response_model=PriceHistoryResponse)
async def get_price_history(
    symbol: str,
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of entries"),
    storage: DatabaseStorage = Depends(get_storage)
):
    """Get the stored price history of a token, newest first."""
    token = await storage.get_token_by_symbol(symbol)
    if token is None:
        raise HTTPException(status_code=404, detail=f"Token {symbol.upper()} not found")

    history = await storage.get_price_history(token.id, limit=limit)
    return PriceHistoryResponse(
        symbol=token.symbol,
        history=[
            PriceHistoryEntry(
                price=float(entry.price),
                market_cap=float(entry.market_cap) if entry.market_cap is not None else None,
                volume_24h=float(entry.volume_24h) if entry.volume_24h is not None else None,
                timestamp=entry.timestamp
            )
            for entry in history
        ]
    )


@router.post("/balances", response_model=BalancesResponse)
async def get_wallet_balances(
    request: WalletAddressRequest,
    storage: DatabaseStorage = Depends(get_storage),
    ethereum: EthereumService = Depends(get_ethereum_service),
    price_service: CoinGeckoService = Depends(get_price_service),
    settings: Settings = Depends(get_settings)
):
    """
    Read the live balance of every tracked token for a wallet.

    When the wallet is known, the balances and their USD values are stored
    for later portfolio calculations.
    """
    if not ethereum.is_valid_address(request.address):
        raise _invalid_address()

    try:
        tokens = await storage.get_all_tokens()
        balances = await fetch_wallet_balances(ethereum, request.address, tokens)

        wallet = await storage.get_wallet_by_address(request.address)
        if wallet is not None:
            quotes = await asyncio.to_thread(
                fetch_token_prices, price_service, tokens, settings.token_coingecko_ids
            )
            stored = 0
            for token in tokens:
                # Failed reads keep the last stored balance
                if balances[token.id] is None:
                    continue
                amount = Decimal(balances[token.id])
                await storage.upsert_token_balance(
                    wallet.id,
                    token.id,
                    balance=amount,
                    usd_value=usd_value_of(amount, quotes.get(token.id))
                )
                stored += 1
            await storage.commit()
            logger.info(f"Stored {stored}/{len(tokens)} balances for wallet {request.address}")

        return BalancesResponse(
            address=request.address,
            balances={
                token.symbol: TokenBalanceEntry(
                    token_id=token.id,
                    symbol=token.symbol,
                    balance=balances[token.id] or "0",
                    decimals=token.decimals,
                    address=token.address
                )
                for token in tokens
            }
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching wallet balances for {request.address}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch wallet balances: {str(e)}")


@router.post("/portfolio", response_model=PortfolioResponse)
async def calculate_portfolio(
    request: WalletAddressRequest,
    storage: DatabaseStorage = Depends(get_storage),
    price_service: CoinGeckoService = Depends(get_price_service),
    settings: Settings = Depends(get_settings)
):
    """
    Calculate net worth, allocation and health score of a wallet.

    Uses the stored token balances and current prices; the result is saved
    as the wallet's portfolio summary.
    """
    wallet = await storage.get_wallet_by_address(request.address)
    if wallet is None:
        raise HTTPException(status_code=404, detail="Wallet not found")

    try:
        tokens = _tokens_by_id(await storage.get_all_tokens())
        stored_balances = await storage.get_token_balances(wallet.id)
        quotes = await asyncio.to_thread(
            fetch_token_prices, price_service, list(tokens.values()), settings.token_coingecko_ids
        )

        holdings = []
        for balance in stored_balances:
            token = tokens.get(balance.token_id)
            quote = quotes.get(balance.token_id)
            holdings.append(TokenHolding(
                token_address=token.address if token else "",
                balance=format_decimal(balance.balance),
                price_usd=quote["usd"] if quote else 0.0,
                decimals=token.decimals if token else 18
            ))

        metrics = compute_metrics(holdings)
        health_score = classify_health(metrics)

        await storage.upsert_portfolio(
            wallet.id,
            net_worth=metrics.net_worth,
            health_score=health_score.value,
            total_trades=await storage.count_transactions(wallet.id)
        )
        await storage.commit()

        logger.info(
            f"Portfolio for {request.address}: net worth {metrics.net_worth}, "
            f"health {health_score.value}"
        )

        return PortfolioResponse(
            address=request.address,
            net_worth=float(metrics.net_worth),
            health_score=health_score.value,
            tokens=[
                TokenAllocationResponse(
                    address=allocation.address,
                    balance=allocation.balance,
                    usd_value=float(allocation.usd_value),
                    percentage=allocation.percentage
                )
                for allocation in metrics.tokens
            ],
            last_updated=datetime.utcnow()
        )

    except InvalidInputError as e:
        logger.error(f"Invalid holdings for {request.address}: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error calculating portfolio for {request.address}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to calculate portfolio metrics: {str(e)}")


@router.get("/transactions/{address}", response_model=TransactionsResponse)
async def get_transaction_history(
    address: str,
    storage: DatabaseStorage = Depends(get_storage),
    ethereum: EthereumService = Depends(get_ethereum_service),
    settings: Settings = Depends(get_settings)
):
    """Get stored transactions of a wallet and the count of its recent on-chain logs."""
    if not ethereum.is_valid_address(address):
        raise _invalid_address()

    try:
        logs = await ethereum.get_transaction_history(address)

        wallet = await storage.get_wallet_by_address(address)
        transactions = (
            await storage.get_transactions(wallet.id, limit=settings.tx_history_limit)
            if wallet is not None else []
        )

        return TransactionsResponse(
            address=address,
            transactions=[TransactionResponse.model_validate(tx) for tx in transactions],
            blockchain_data=len(logs),
            last_updated=datetime.utcnow()
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching transactions for {address}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch transaction history: {str(e)}")


@router.get("/staking/{address}", response_model=StakingResponse)
async def get_staking_positions(
    address: str,
    storage: DatabaseStorage = Depends(get_storage),
    ethereum: EthereumService = Depends(get_ethereum_service)
):
    """Get the active staking positions of a wallet."""
    if not ethereum.is_valid_address(address):
        raise _invalid_address()

    wallet = await storage.get_wallet_by_address(address)
    if wallet is None:
        raise HTTPException(status_code=404, detail="Wallet not found")

    try:
        positions = await storage.get_active_staking_positions(wallet.id)
        tokens = _tokens_by_id(await storage.get_all_tokens())

        results = []
        for position in positions:
            token = tokens.get(position.token_id)
            results.append(StakingPositionResponse(
                id=position.id,
                pool_name=position.pool_name,
                staking_type=position.staking_type,
                token=StakingTokenInfo(symbol=token.symbol, name=token.name) if token else None,
                staked_amount=position.staked_amount,
                rewards_earned=position.rewards_earned,
                unclaimed_rewards=position.unclaimed_rewards,
                apy=position.apy,
                is_active=position.is_active,
                created_at=position.created_at
            ))

        return StakingResponse(
            address=address,
            staking_positions=results,
            last_updated=datetime.utcnow()
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching staking positions for {address}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch staking positions: {str(e)}")


@router.post("/wallet/connect", response_model=WalletConnectResponse)
async def connect_wallet(
    request: WalletConnectRequest,
    storage: DatabaseStorage = Depends(get_storage)
):
    """Connect a wallet, creating it on first use."""
    try:
        existing = await storage.get_wallet_by_address(request.address)
        if existing is not None:
            wallet = await storage.update_wallet(existing.id, is_connected=True)
            message = "Wallet already connected"
        else:
            wallet = await storage.create_wallet(
                address=request.address,
                user_id=request.user_id,
                network=request.network,
                is_connected=True
            )
            message = "Wallet connected successfully"

        await storage.commit()
        logger.info(f"{message}: {request.address}")

        return WalletConnectResponse(
            success=True,
            wallet=WalletResponse.model_validate(wallet),
            message=message
        )

    except IntegrityError as e:
        await storage.rollback()
        logger.error(f"Integrity error connecting wallet {request.address}: {e}")
        raise HTTPException(status_code=400, detail="Wallet could not be stored (duplicate address or unknown user)")
    except Exception as e:
        logger.error(f"Error connecting wallet {request.address}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to connect wallet: {str(e)}")


@router.post("/wallet/disconnect", response_model=WalletDisconnectResponse)
async def disconnect_wallet(
    request: WalletDisconnectRequest,
    storage: DatabaseStorage = Depends(get_storage)
):
    """Disconnect a wallet, deleting it together with its stored data."""
    try:
        deleted = await storage.delete_wallet(request.address)
        if not deleted:
            raise HTTPException(status_code=404, detail="Wallet not found")

        await storage.commit()
        return WalletDisconnectResponse(success=True, message="Wallet disconnected successfully")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error disconnecting wallet {request.address}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to disconnect wallet: {str(e)}")
