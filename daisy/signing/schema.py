"""
Canonical EIP-712 schema for Daisy subscription managers.

The subscription manager contract verifies agreements against these
declarations, so field order must not change.
"""

SUBSCRIPTION = "Subscription"
CANCEL_SUBSCRIPTION = "CancelSubscription"

CANCEL_ACTION = "cancel"

SUBSCRIPTION_TYPES = {
    "EIP712Domain": [
        {"name": "verifyingContract", "type": "address"},
    ],
    SUBSCRIPTION: [
        {"name": "subscriber", "type": "address"},
        {"name": "token", "type": "address"},
        {"name": "price", "type": "uint256"},
        {"name": "periodUnit", "type": "string"},
        {"name": "periods", "type": "uint256"},
        {"name": "maxExecutions", "type": "uint256"},
        {"name": "plan", "type": "bytes32"},
        {"name": "nonce", "type": "bytes32"},
        {"name": "signatureExpiresAt", "type": "uint256"},
    ],
    CANCEL_SUBSCRIPTION: [
        {"name": "action", "type": "string"},
        {"name": "subscriptionId", "type": "bytes32"},
        {"name": "nonce", "type": "bytes32"},
        {"name": "signatureExpiresAt", "type": "uint256"},
    ],
}
