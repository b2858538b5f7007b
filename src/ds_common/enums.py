"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class TradeStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TradeRole(str, Enum):
    ANY = "ANY"
    SELLER = "SELLER"
    BUYER = "BUYER"


class Engine(str, Enum):
    ESCROW = "ESCROW"
    SAVINGS = "SAVINGS"
    VAULT = "VAULT"
    TOKEN = "TOKEN"


class LedgerEventType(str, Enum):
    # Escrow
    TRADE_CREATED = "TRADE_CREATED"
    TRADE_COMPLETED = "TRADE_COMPLETED"
    TRADE_CANCELLED = "TRADE_CANCELLED"
    # Savings
    SAVING_CREATED = "SAVING_CREATED"
    SAVING_WITHDRAWN = "SAVING_WITHDRAWN"
    # Vault
    VAULT_DEPOSITED = "VAULT_DEPOSITED"
    VAULT_WITHDRAWN = "VAULT_WITHDRAWN"
    # Token ledger
    ALLOWANCE_SET = "ALLOWANCE_SET"
    FAUCET_MINT = "FAUCET_MINT"


class VaultMovementType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
