import sys
import os
import asyncio

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from casino_client.core.exceptions import CasinoError
from casino_client.main import create_session


async def check_session(username=None, password=None):
    """Resume the stored session (or log in) and print the account summary."""
    async with create_session() as session:
        if session.account.profile is None:
            if not username:
                print("No stored session. Usage: check_session.py USERNAME PASSWORD")
                return 1
            await session.account.login(username, password)

        profile = session.account.profile
        print(f"Logged in as '{profile.user.username}'{' (staff)' if profile.user.is_staff else ''}.")
        print(f"Balance: {profile.coins} coins{' - bankrupt' if profile.is_bankrupt else ''}")
        print(f"Games played: {profile.games_played}")

        requests = await session.coin_requests.my_requests()
        pending = session.coin_requests.pending_request()
        if pending:
            print(f"Pending coin request #{pending.id} for {pending.amount} coins.")
        elif requests:
            print(f"{len(requests)} past coin request(s), none pending.")
        return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(check_session(*sys.argv[1:3])))
    except CasinoError as e:
        print(f"Failed: {e.message}")
        sys.exit(1)
