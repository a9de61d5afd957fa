"""
Global constants
"""

UINT32_MAX = 2**32 - 1

# nSequence value which disables relative locktime and, with all inputs final,
# nLocktime
SEQUENCE_FINAL = UINT32_MAX

# BIP 141 segwit serialization
SEGWIT_MARKER = 0x00
SEGWIT_FLAG = 0x01

# BIP 119
# https://github.com/bitcoin/bips/blob/master/bip-0119.mediawiki
CTV_HASH_SIZE = 32


#### Script constants

### Script opcodes
## https://github.com/bitcoin/bitcoin/blob/v23.0/src/script/script.h#L65-L206

# push value
OP_0 = 0x00
OP_FALSE = OP_0
# 0x01 to 0x4b push the next n bytes
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_1NEGATE = 0x4F
OP_RESERVED = 0x50
OP_1 = 0x51
OP_TRUE = OP_1
OP_2 = 0x52
OP_3 = 0x53
OP_4 = 0x54
OP_5 = 0x55
OP_6 = 0x56
OP_7 = 0x57
OP_8 = 0x58
OP_9 = 0x59
OP_10 = 0x5A
OP_11 = 0x5B
OP_12 = 0x5C
OP_13 = 0x5D
OP_14 = 0x5E
OP_15 = 0x5F
OP_16 = 0x60

# control
OP_NOP = 0x61
OP_IF = 0x63
OP_NOTIF = 0x64
OP_ELSE = 0x67
OP_ENDIF = 0x68
OP_VERIFY = 0x69
OP_RETURN = 0x6A

# stack ops
OP_2DROP = 0x6D
OP_DROP = 0x75
OP_DUP = 0x76
OP_SWAP = 0x7C

# bit logic
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88

# crypto
OP_RIPEMD160 = 0xA6
OP_SHA256 = 0xA8
OP_HASH160 = 0xA9
OP_HASH256 = 0xAA
OP_CHECKSIG = 0xAC
OP_CHECKSIGVERIFY = 0xAD
OP_CHECKMULTISIG = 0xAE
OP_CHECKMULTISIGVERIFY = 0xAF

# expansion
OP_NOP1 = 0xB0
OP_CHECKLOCKTIMEVERIFY = 0xB1
OP_NOP2 = OP_CHECKLOCKTIMEVERIFY
OP_CHECKSEQUENCEVERIFY = 0xB2
OP_NOP3 = OP_CHECKSEQUENCEVERIFY
# BIP 119 redefines OP_NOP4
OP_CHECKTEMPLATEVERIFY = 0xB3
OP_NOP4 = OP_CHECKTEMPLATEVERIFY
OP_NOP5 = 0xB4
OP_NOP6 = 0xB5
OP_NOP7 = 0xB6
OP_NOP8 = 0xB7
OP_NOP9 = 0xB8
OP_NOP10 = 0xB9

# Opcode added by BIP 342 (Tapscript)
OP_CHECKSIGADD = 0xBA

OP_INVALIDOPCODE = 0xFF
