import argparse
import getpass
import json
import sys

from .api import delete_file, download_file, list_files, login, rename_file, signup, upload_files
from .client import StorageClient
from .config import Settings
from .errors import ApiError, AuthorizationError
from .models import SortColumn, SortDirection, SortState
from .session_store import TOKEN_KEY, SessionStore
from .transfers import save_to_directory
from .utils import format_bytes, format_timestamp

_SORT_COLUMNS = {
    'name': SortColumn.NAME,
    'ext': SortColumn.EXTENSION,
    'date': SortColumn.DATE,
    'size': SortColumn.SIZE,
}


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='webstore')
    p.add_argument('--session', default=settings.session_path)
    sub = p.add_subparsers(dest='cmd', required=True)

    for name in ('login', 'signup'):
        auth = sub.add_parser(name)
        auth.add_argument('--username', required=True)
        auth.add_argument('--password')

    sub.add_parser('logout')

    ls = sub.add_parser('ls')
    ls.add_argument('--col', choices=sorted(_SORT_COLUMNS), default='name')
    ls.add_argument('--desc', action='store_true')
    ls.add_argument('--json', action='store_true')

    put = sub.add_parser('put')
    put.add_argument('paths', nargs='+')

    get = sub.add_parser('get')
    get.add_argument('file_id')
    get.add_argument('--out', default=settings.download_dir)

    mv = sub.add_parser('mv')
    mv.add_argument('file_id')
    mv.add_argument('name')

    rm = sub.add_parser('rm')
    rm.add_argument('file_id')

    return p


def _find_entry(client, file_id: str):
    for item in list_files(client):
        if str(item.id) == str(file_id):
            return item
    raise SystemExit(f'No file with id {file_id}')


def _print_progress(done: int, total: int) -> None:
    if total:
        sys.stderr.write(f"\r{done * 100 // total:3d}%")
        if done >= total:
            sys.stderr.write("\n")
        sys.stderr.flush()


def run(args: argparse.Namespace, client: StorageClient, store: SessionStore) -> int:
    if args.cmd in ('login', 'signup'):
        password = args.password or getpass.getpass('Password: ')
        if args.cmd == 'signup':
            print(signup(client, args.username, password) or 'OK')
            return 0
        store.set(TOKEN_KEY, login(client, args.username, password))
        print(f'OK: session saved to {store.path}')
        return 0

    if args.cmd == 'logout':
        store.remove(TOKEN_KEY)
        print('OK')
        return 0

    token = store.get(TOKEN_KEY)
    if not token:
        raise SystemExit('Not signed in (run: webstore login --username NAME)')
    authed = client.authorized(str(token))

    if args.cmd == 'ls':
        direction = SortDirection.DESCENDING if args.desc else SortDirection.ASCENDING
        items = list_files(authed, SortState(_SORT_COLUMNS[args.col], direction))
        if args.json:
            print(json.dumps([
                {
                    'id': item.id,
                    'name': item.display_name,
                    'extension': item.extension,
                    'size_bytes': item.size_bytes,
                    'modified_at': item.modified_at.isoformat() if item.modified_at else None,
                }
                for item in items
            ], indent=2))
        else:
            for item in items:
                print(f"{item.id}\t{format_bytes(item.size_bytes)}\t{format_timestamp(item.modified_at)}\t{item.filename}")
        return 0

    if args.cmd == 'put':
        print(upload_files(authed, args.paths, on_progress=_print_progress) or 'OK')
        return 0

    if args.cmd == 'get':
        entry = _find_entry(authed, args.file_id)
        payload = download_file(authed, entry.id, entry.filename, on_progress=_print_progress)
        saved = save_to_directory(args.out)(entry.filename, payload)
        print(saved)
        return 0

    if args.cmd == 'mv':
        entry = _find_entry(authed, args.file_id)
        print(rename_file(authed, entry.id, args.name, entry.extension) or 'OK')
        return 0

    if args.cmd == 'rm':
        entry = _find_entry(authed, args.file_id)
        print(delete_file(authed, entry.id) or 'OK')
        return 0

    return 1


def main(argv=None) -> int:
    settings = Settings.from_env()
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    store = SessionStore(args.session)
    client = StorageClient(base_url=settings.base_url, timeout=settings.timeout, http_log_path=settings.http_log_path)
    try:
        return run(args, client, store)
    except AuthorizationError as exc:
        store.remove(TOKEN_KEY)
        print(f'error: {exc.message} (session cleared, log in again)', file=sys.stderr)
        return 1
    except ApiError as exc:
        print(f'error: {exc.message}', file=sys.stderr)
        return 1
    finally:
        client.close()


if __name__ == '__main__':
    raise SystemExit(main())
