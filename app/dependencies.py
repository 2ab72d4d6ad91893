from fastapi import Header, HTTPException, status

from app.services.inventory_service import normalize_address


async def get_wallet_address(x_wallet_address: str | None = Header(default=None)) -> str:
    """Wallet of the caller. Signature checks happen in the wallet layer upstream."""
    if not x_wallet_address or not x_wallet_address.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Wallet-Address header",
        )
    return normalize_address(x_wallet_address)
