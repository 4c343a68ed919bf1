"""
Infrastructure: RPC transport, signing, transaction assembly, tracing
"""

from .rpc import RpcClient, RpcClientConfig
from .solana_signer import Signer, LocalSigner, create_signer
from .tx_builder import TxBuilder, TxBuilderConfig, raise_for_result
from .tracing import CorrelationContext, get_correlation_id, log_with_correlation

__all__ = [
    "RpcClient",
    "RpcClientConfig",
    "Signer",
    "LocalSigner",
    "create_signer",
    "TxBuilder",
    "TxBuilderConfig",
    "raise_for_result",
    "CorrelationContext",
    "get_correlation_id",
    "log_with_correlation",
]
