from typing import NewType

UserOperationHash = NewType('UserOperationHash', str)
TransactionHash = NewType('TransactionHash', str)
Address = NewType('Address', str)
HexBytes32 = NewType('HexBytes32', str)
