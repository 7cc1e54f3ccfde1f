"""
Upstream health checks.
"""
from wallet_api.services.status.rpc import check_rpc_endpoint, check_rpc_endpoints

__all__ = ["check_rpc_endpoint", "check_rpc_endpoints"]
