import asyncio

import bcrypt

BCRYPT_ROUNDS = 12


def _hash(password: str) -> str:
    salt = bcrypt.gensalt(BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def _verify(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))


async def hash_password_async(password: str) -> str:
    # bcrypt is CPU bound; keep it off the event loop
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _hash, password)


async def verify_password_async(password: str, hashed_password: str) -> bool:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _verify, password, hashed_password)
