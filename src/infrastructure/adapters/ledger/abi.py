"""Certificate contract ABI.

``certifyClip(address creator, string clipId)`` anchors a certificate for
an asset id. On success the contract emits ``ClipCertified`` carrying the
token id assigned to the certificate.
"""

from typing import Any

CERTIFY_FUNCTION_NAME = "certifyClip"
CERTIFIED_EVENT_NAME = "ClipCertified"

CERTIFICATE_CONTRACT_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "address", "name": "creator", "type": "address"},
            {"internalType": "string", "name": "clipId", "type": "string"},
        ],
        "name": CERTIFY_FUNCTION_NAME,
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {
                "indexed": True,
                "internalType": "address",
                "name": "creator",
                "type": "address",
            },
            {
                "indexed": False,
                "internalType": "string",
                "name": "clipId",
                "type": "string",
            },
            {
                "indexed": True,
                "internalType": "uint256",
                "name": "tokenId",
                "type": "uint256",
            },
        ],
        "name": CERTIFIED_EVENT_NAME,
        "type": "event",
    },
]
