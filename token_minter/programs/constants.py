"""
Token program constants
"""

# Program IDs
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# Token instruction tags (shared by both token programs)
MINT_TO_INSTRUCTION = 7

# Associated token account instruction tags
CREATE_ATA_INSTRUCTION = 0
CREATE_ATA_IDEMPOTENT_INSTRUCTION = 1

# Base mint layout size, identical in both programs
MINT_ACCOUNT_SIZE = 82

# Token account size; Token-2022 extended mints are longer than this
TOKEN_ACCOUNT_SIZE = 165

# Token-2022 account type byte written after the base layout padding
ACCOUNT_TYPE_MINT = 1

# Decimals assumed when the mint layout cannot be read
FALLBACK_DECIMALS = 9
