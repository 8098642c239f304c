"""Well-known Solana mints."""

WRAPPED_SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCER9JYTZcJJb4sVAXo1ZCUoGFjmDtAyoTyU"

NATIVE_SOL_DECIMALS = 9
