"""claimdrop - batched claimable-balance distributor for Stellar assets."""

__version__ = "0.1.0"
