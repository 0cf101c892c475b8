"""Application use cases."""

from stockledger.application.use_cases.issue_stock import IssueStockResult, IssueStockUseCase
from stockledger.application.use_cases.provision_product import (
    ProvisionProductResult,
    ProvisionProductUseCase,
    generate_product_code,
)
from stockledger.application.use_cases.receive_stock import (
    ReceiveStockResult,
    ReceiveStockUseCase,
)

__all__ = [
    "ReceiveStockUseCase",
    "ReceiveStockResult",
    "IssueStockUseCase",
    "IssueStockResult",
    "ProvisionProductUseCase",
    "ProvisionProductResult",
    "generate_product_code",
]
