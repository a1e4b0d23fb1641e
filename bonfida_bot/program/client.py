"""Async client for the Bonfida Bot program."""

import logging
from typing import Dict, List, Optional

from solana.rpc.async_api import AsyncClient
from solders.instruction import Instruction
from solders.pubkey import Pubkey

from ..config import BonfidaBotConfig
from .accounts import (
    parse_header,
    parse_market_metadata,
    parse_mint_decimals,
    parse_pool_state,
)
from .constants import POOL_HEADER_SIZE
from .errors import AccountNotFoundError, FormatError, PoolUnavailableError
from .instructions import (
    build_collect_fees_instruction,
    build_deposit_instruction,
    build_settle_funds_instruction,
)
from .pda import get_pool_address, get_pool_mint_address, get_vault_signer_address
from .types import (
    CollectFeesInstruction,
    DepositInstruction,
    MarketData,
    PoolBalances,
    PoolInfo,
    PoolState,
    SettleFundsInstruction,
    TokenBalance,
)
from .utils import get_associated_token_address, validate_pool_seed

logger = logging.getLogger(__name__)


class BonfidaBotClient:
    """Async client for pool, market and mint accounts and the instructions that use them."""

    def __init__(
        self,
        connection: AsyncClient,
        config: Optional[BonfidaBotConfig] = None,
    ):
        """Initialize the client.

        Args:
            connection: Solana RPC async client
            config: Program identities (defaults to mainnet)
        """
        self.connection = connection
        self.config = config or BonfidaBotConfig.default()

    @classmethod
    def from_config(cls, config: BonfidaBotConfig) -> "BonfidaBotClient":
        """Open an RPC connection to `config.rpc_url` and wrap it."""
        return cls(AsyncClient(config.rpc_url), config)

    async def close(self) -> None:
        await self.connection.close()

    async def __aenter__(self) -> "BonfidaBotClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    @property
    def program_id(self) -> Pubkey:
        return self.config.program_id

    # =========================================================================
    # Account Fetchers
    # =========================================================================

    async def _get_account_data(self, address: Pubkey) -> Optional[bytes]:
        response = await self.connection.get_account_info(address)
        if response.value is None:
            return None
        return bytes(response.value.data)

    async def get_pool_state(self, pool_seed: bytes) -> PoolState:
        """Fetch and deserialize a pool account.

        Raises:
            PoolUnavailableError: If the pool is missing, shorter than its
                header or does not decode (including a status byte holding
                64 pending orders)
        """
        pool_address = get_pool_address(pool_seed, self.program_id)
        data = await self._get_account_data(pool_address)

        if data is None:
            raise PoolUnavailableError(str(pool_address), "Pool account not found")
        if len(data) < POOL_HEADER_SIZE:
            raise PoolUnavailableError(
                str(pool_address),
                f"Pool account too short ({len(data)} bytes)",
            )

        try:
            return parse_pool_state(data)
        except FormatError as e:
            raise PoolUnavailableError(
                str(pool_address), f"Pool account does not decode ({e})"
            ) from e

    async def fetch_pool_info(self, pool_seed: bytes) -> PoolInfo:
        """Fetch a pool and resolve its mint and asset accounts."""
        seed = validate_pool_seed(pool_seed)
        state = await self.get_pool_state(seed)
        pool_address = get_pool_address(seed, self.program_id)
        asset_mints = [asset.mint_address for asset in state.assets]

        asset_accounts: Dict[Pubkey, Pubkey] = {}
        for mint in asset_mints:
            account = get_associated_token_address(
                pool_address,
                mint,
                self.config.token_program_id,
                self.config.associated_token_program_id,
            )
            asset_accounts[account] = mint

        return PoolInfo(
            address=pool_address,
            mint=get_pool_mint_address(seed, self.program_id),
            header=state.header,
            authorized_markets=state.authorized_markets,
            asset_mints=asset_mints,
            asset_accounts=asset_accounts,
        )

    async def get_market_data(self, market: Pubkey) -> MarketData:
        """Fetch and deserialize a venue market account."""
        data = await self._get_account_data(market)
        if data is None:
            raise AccountNotFoundError(str(market))
        return parse_market_metadata(data, market)

    async def get_mint_decimals(self, mint: Pubkey) -> int:
        """Fetch the decimals of a token mint."""
        data = await self._get_account_data(mint)
        if data is None:
            raise AccountNotFoundError(str(mint))
        return parse_mint_decimals(data)

    async def fetch_pool_balances(self, pool_seed: bytes) -> PoolBalances:
        """Fetch the pool token supply and each asset balance, in pool order.

        The balances reflect the ledger height of each RPC call and are only
        eventually consistent with a separately fetched history.
        """
        info = await self.fetch_pool_info(pool_seed)

        supply = (await self.connection.get_token_supply(info.mint)).value
        pool_token_supply = TokenBalance(
            mint=info.mint,
            amount=int(supply.amount),
            decimals=supply.decimals,
        )

        assets: List[TokenBalance] = []
        for account, mint in info.asset_accounts.items():
            balance = (await self.connection.get_token_account_balance(account)).value
            assets.append(
                TokenBalance(mint=mint, amount=int(balance.amount), decimals=balance.decimals)
            )

        return PoolBalances(pool_token_supply=pool_token_supply, assets=assets)

    async def get_pool_seeds(self, signal_provider: Optional[Pubkey] = None) -> List[bytes]:
        """Scan the program's accounts and return the seed of every pool.

        Accounts too short to hold a header are skipped.
        """
        response = await self.connection.get_program_accounts(
            self.program_id, encoding="base64"
        )

        seeds = []
        for keyed in response.value:
            data = bytes(keyed.account.data)
            if len(data) < POOL_HEADER_SIZE:
                continue
            try:
                header = parse_header(data)
            except FormatError as e:
                logger.warning(f"Skipping account {keyed.pubkey}: {e}")
                continue
            if signal_provider is not None and header.signal_provider != signal_provider:
                continue
            seeds.append(header.seed)

        logger.debug(f"Found {len(seeds)} pools under {self.program_id}")
        return seeds

    # =========================================================================
    # Instruction Builders
    # =========================================================================

    def _pool_token_account(self, owner: Pubkey, pool_mint: Pubkey) -> Pubkey:
        return get_associated_token_address(
            owner,
            pool_mint,
            self.config.token_program_id,
            self.config.associated_token_program_id,
        )

    async def deposit_instruction(
        self,
        pool_seed: bytes,
        source_owner: Pubkey,
        source_asset_accounts: List[Pubkey],
        pool_token_amount: int,
    ) -> Instruction:
        """Build a deposit instruction for a pool.

        Pool tokens go to the associated accounts of the source owner, the
        signal provider and the configured fee receivers. Those accounts
        must exist before the instruction runs.
        """
        info = await self.fetch_pool_info(pool_seed)
        return build_deposit_instruction(
            DepositInstruction(pool_seed=info.header.seed, pool_token_amount=pool_token_amount),
            pool=info.address,
            pool_mint=info.mint,
            pool_asset_accounts=list(info.asset_accounts),
            target_pool_token=self._pool_token_account(source_owner, info.mint),
            signal_provider_fee_receiver=self._pool_token_account(
                info.header.signal_provider, info.mint
            ),
            fee_receiver=self._pool_token_account(self.config.fee_receiver, info.mint),
            buy_and_burn=self._pool_token_account(self.config.buy_and_burn, info.mint),
            source_owner=source_owner,
            source_asset_accounts=source_asset_accounts,
            program_id=self.program_id,
        )

    async def collect_fees_instruction(self, pool_seed: bytes) -> Instruction:
        """Build a collect fees instruction paying the configured fee receivers."""
        info = await self.fetch_pool_info(pool_seed)
        return build_collect_fees_instruction(
            CollectFeesInstruction(pool_seed=info.header.seed),
            pool=info.address,
            pool_mint=info.mint,
            signal_provider_pool_token=self._pool_token_account(
                info.header.signal_provider, info.mint
            ),
            fee_pool_token=self._pool_token_account(self.config.fee_receiver, info.mint),
            buy_and_burn_pool_token=self._pool_token_account(
                self.config.buy_and_burn, info.mint
            ),
            program_id=self.program_id,
        )

    async def settle_funds_instruction(
        self,
        pool_seed: bytes,
        market: Pubkey,
        open_orders: Pubkey,
        referrer: Optional[Pubkey] = None,
    ) -> Instruction:
        """Build a settle instruction moving an open orders account's proceeds into the pool.

        Raises:
            ValueError: If the pool holds no asset for one of the market's mints
        """
        info = await self.fetch_pool_info(pool_seed)
        market_data = await self.get_market_data(market)

        for mint in (market_data.coin_mint, market_data.pc_mint):
            if mint not in info.asset_mints:
                raise ValueError(f"Pool {info.address} holds no asset for mint {mint}")

        return build_settle_funds_instruction(
            SettleFundsInstruction(
                pool_seed=info.header.seed,
                pc_index=info.asset_mints.index(market_data.pc_mint),
                coin_index=info.asset_mints.index(market_data.coin_mint),
            ),
            market=market,
            open_orders=open_orders,
            pool=info.address,
            pool_mint=info.mint,
            coin_vault=market_data.coin_vault,
            pc_vault=market_data.pc_vault,
            coin_pool_asset=self._pool_token_account(info.address, market_data.coin_mint),
            pc_pool_asset=self._pool_token_account(info.address, market_data.pc_mint),
            vault_signer=get_vault_signer_address(
                market, market_data.vault_signer_nonce, self.config.dex_program_id
            ),
            serum_program_id=self.config.dex_program_id,
            referrer=referrer,
            program_id=self.program_id,
        )
