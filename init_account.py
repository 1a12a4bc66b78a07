"""
初始化本地账号
创建一个可以上传皮肤的账号，并打印访问令牌
"""
import argparse
import asyncio

from app.core.security import create_access_token
from app.infrastructure.database import get_session, init_db
from app.modules.accounts import AccountCreateInput, AccountService


async def create_account(username: str, password: str) -> None:
    """创建账号并输出令牌"""
    await init_db()

    async for db in get_session():
        service = AccountService.with_session(db)

        account = await service.get_by_username(username)
        if account:
            print(f"账号已存在: {username}")
        else:
            account = await service.create_account(
                AccountCreateInput(username=username, password=password)
            )
            print(f"账号创建成功: {username}")

        print(f"访问令牌: {create_access_token(account.id, account.username)}")


def main() -> None:
    parser = argparse.ArgumentParser(description="创建皮肤存储的本地账号")
    parser.add_argument("username")
    parser.add_argument("password")
    args = parser.parse_args()
    asyncio.run(create_account(args.username, args.password))


if __name__ == "__main__":
    main()
