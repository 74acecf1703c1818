#!/usr/bin/env python
"""Idempotent seed / inspection script for the role store.

Usage:
    python backend/scripts/seed_roles.py               # load store, seed system roles if empty
    python backend/scripts/seed_roles.py --show-roles  # print role -> permission counts
    python backend/scripts/seed_roles.py --dry-run     # work on an in-memory copy (store untouched)
    python backend/scripts/seed_roles.py --validate    # check names & stale permission keys; exit 2 on problems
    python backend/scripts/seed_roles.py --export-json roles.json
"""
from __future__ import annotations
import os, sys, argparse, textwrap, json, hashlib
from typing import Any, Dict, List

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from ehs_roles import create_app, get_db  # type: ignore
from ehs_roles.config.roles import MIN_ROLE_NAME_LENGTH
from ehs_roles.services.catalog import CATALOG
from ehs_roles.services.matrix import MatrixView, Scope
from ehs_roles.services.role_store import MemoryRoleStore, SqlRoleStore
from ehs_roles.services.roles import RoleRepository


def find_problems(raw: Any) -> List[str]:
    """Inspect a raw persisted collection without repairing it."""
    problems: List[str] = []
    if raw is None:
        return problems
    if not isinstance(raw, dict):
        return [f'Store payload is {type(raw).__name__}, expected object']
    seen: Dict[str, str] = {}
    for key, data in raw.items():
        if not isinstance(data, dict):
            problems.append(f"Entry '{key}' is not an object")
            continue
        name = (data.get('name') or '').strip()
        if data.get('id') != key:
            problems.append(f"Entry '{key}' has mismatched id {data.get('id')!r}")
        if len(name) < MIN_ROLE_NAME_LENGTH:
            problems.append(f"Role '{key}' has invalid name {name!r}")
        folded = name.casefold()
        if folded in seen:
            problems.append(f"Roles '{seen[folded]}' and '{key}' share the name {name!r}")
        seen[folded] = key
        perms = data.get('permissions') or {}
        if not isinstance(perms, dict):
            problems.append(f"Role '{key}' permissions are not an object")
            continue
        for module_id, entities in perms.items():
            if not isinstance(entities, dict):
                problems.append(f"Role '{key}' permissions.{module_id} is not an object")
                continue
            for entity, actions in entities.items():
                if not isinstance(actions, dict):
                    problems.append(f"Role '{key}' permissions.{module_id}.{entity} is not an object")
                    continue
                for action in actions:
                    if not CATALOG.is_leaf(module_id, entity, action):
                        problems.append(f"Role '{key}' references unknown permission {module_id}/{entity}/{action}")
    return problems


def summarize_roles(repo: RoleRepository):
    core, full = MatrixView(Scope.CORE), MatrixView(Scope.FULL)
    return [
        (r.name, 'system' if r.is_system_role else 'custom', core.visible_enabled_count(r.permissions), full.visible_enabled_count(r.permissions))
        for r in repo.list()
    ]


def print_role_summary(repo: RoleRepository):
    rows = summarize_roles(repo)
    if not rows:
        print("[INFO] No roles present.")
        return
    name_w = max(len(r[0]) for r in rows)
    print(f"{'Role'.ljust(name_w)} | Kind   |  Core |  Full")
    print('-' * (name_w + 26))
    for name, kind, core_cnt, full_cnt in rows:
        print(f"{name.ljust(name_w)} | {kind.ljust(6)} | {str(core_cnt).rjust(5)} | {str(full_cnt).rjust(5)}")


def build_role_permission_map(repo: RoleRepository) -> Dict[str, Dict[str, Any]]:
    """role id -> name and granted action ids; ids stay distinct even when names collide."""
    return {r.id: {'name': r.name, 'permissions': sorted(r.permissions.action_ids())} for r in repo.list()}


def roles_checksum(role_perm_map: Dict[str, Dict[str, Any]]) -> str:
    canonical = json.dumps(role_perm_map, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed and inspect the EHS role store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_roles.py\n  dry run: seed_roles.py --dry-run\n  show roles: seed_roles.py --show-roles\n""")
    )
    p.add_argument('--show-roles', action='store_true', help='Print role permission counts (core / full scope)')
    p.add_argument('--dry-run', action='store_true', help='Operate on an in-memory copy of the store')
    p.add_argument('--export-json', nargs='?', const='-', metavar='FILE', help='Export role id -> name + action ids JSON (to FILE or stdout if omitted)')
    p.add_argument('--validate', action='store_true', help='Validate stored roles; exits 2 on problems')
    p.add_argument('--fail-if-changed', metavar='CHECKSUM', help='Exit 4 if computed roles checksum differs from provided value')
    return p.parse_args(argv)


def main(argv=None, app=None) -> int:
    args = parse_args(argv)
    app = app or create_app()
    with app.app_context():
        sql_store = SqlRoleStore(get_db, app.config['ROLE_STORE_KEY'])
        try:
            raw = sql_store.load()
        except ValueError:
            raw = 'unreadable'
        if args.validate:
            problems = find_problems(raw)
            if problems:
                print('\n[VALIDATION] FAIL:')
                for problem in problems:
                    print(' -', problem)
                return 2
            print('[VALIDATION] OK: All stored roles reference known permissions.')

        store = MemoryRoleStore(raw if isinstance(raw, dict) else None) if args.dry_run else sql_store
        repo = RoleRepository(store).initialize()
        if args.dry_run:
            print(f"[DRY-RUN] Store untouched. Seeded: {repo.seeded}, roles: {len(repo)}")
        elif repo.persist_failed:
            print("[WARN] Role store could not be written; roles exist in memory only.")
        else:
            print(f"[DONE] Seeded: {repo.seeded}, roles: {len(repo)}")

        if args.show_roles:
            print('\nRole Permission Summary:')
            print_role_summary(repo)

        role_perm_map = build_role_permission_map(repo)
        checksum = roles_checksum(role_perm_map)
        if args.fail_if_changed:
            if checksum != args.fail_if_changed:
                print(f"[CHECKSUM] MISMATCH: expected {args.fail_if_changed} got {checksum}")
                return 4
            print(f"[CHECKSUM] OK: {checksum}")

        if args.export_json is not None:
            payload = {
                'roles': role_perm_map,
                'meta': {
                    'permissions_total': sum(len(v['permissions']) for v in role_perm_map.values()),
                    'distinct_permissions': len({p for v in role_perm_map.values() for p in v['permissions']}),
                    'catalog_actions': len(CATALOG.action_ids()),
                    'roles_checksum_sha256': checksum,
                    'role_names_sorted': sorted(v['name'] for v in role_perm_map.values()),
                    'dry_run': args.dry_run,
                }
            }
            if args.export_json == '-':
                print(json.dumps(payload, indent=2, sort_keys=True))
            else:
                with open(args.export_json, 'w', encoding='utf-8') as f:
                    json.dump(payload, f, indent=2, sort_keys=True)
                print(f"[INFO] Exported JSON to {args.export_json}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
