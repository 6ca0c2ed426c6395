"""管理者セッション発行スクリプト (開発・運用向け)

本番では外部の認証基盤がセッションを発行する。
python -m gymadmin.create_admin_session --email admin@example.com
python -m gymadmin.create_admin_session --revoke <session_id>
"""
import argparse
import asyncio

from gymadmin.core.session import create_session, destroy_session, get_redis
from gymadmin.routers.deps import ADMIN_ROLES


async def _issue(admin_id: int, role: str, email: str) -> str:
    r = await get_redis()
    return await create_session(r, admin_id, role, email)


async def _revoke(session_id: str) -> bool:
    r = await get_redis()
    return await destroy_session(r, session_id)


def main():
    parser = argparse.ArgumentParser(description="管理者セッションを発行/破棄する")
    parser.add_argument("--email", default="admin@example.com")
    parser.add_argument("--admin-id", type=int, default=1)
    parser.add_argument("--role", choices=ADMIN_ROLES, default="admin")
    parser.add_argument("--revoke", metavar="SESSION_ID", help="指定したセッションを破棄")
    args = parser.parse_args()

    if args.revoke:
        if asyncio.run(_revoke(args.revoke)):
            print(f"セッション破棄完了: {args.revoke}")
        else:
            print(f"セッションが見つかりません: {args.revoke}")
        return

    session_id = asyncio.run(_issue(args.admin_id, args.role, args.email))
    print(f"セッション発行完了: email={args.email}, role={args.role}")
    print(f"session_id={session_id}")
    print(f"Authorization: Bearer {session_id}")


if __name__ == "__main__":
    main()
