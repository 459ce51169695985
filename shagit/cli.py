import argparse
import logging
import os
import sys
import textwrap

from . import base, config, data
from .errors import ShagitError


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=config.log_level(args.verbose),
                        format='%(levelname)s %(name)s: %(message)s')
    try:
        args.func(args)
    except (ShagitError, OSError) as e:
        print(f'shagit: {e}', file=sys.stderr)
        return 1
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='shagit')
    parser.add_argument('-C', dest='work_dir', default=os.curdir,
                        help='run as if started in WORK_DIR')
    parser.add_argument('-v', '--verbose', action='store_true')
    commands = parser.add_subparsers(dest='command')
    commands.required = True

    init_parser = commands.add_parser('init')
    init_parser.set_defaults(func=init)

    hash_object_parser = commands.add_parser('hash-object')
    hash_object_parser.set_defaults(func=hash_object)
    hash_object_parser.add_argument('file')

    cat_file_parser = commands.add_parser('cat-file')
    cat_file_parser.set_defaults(func=cat_file)
    cat_file_parser.add_argument('-t', '--type', dest='type_', default=None,
                                 choices=('blob', 'tree', 'commit'))
    cat_file_parser.add_argument('object')

    write_tree_parser = commands.add_parser('write-tree')
    write_tree_parser.set_defaults(func=write_tree)

    read_tree_parser = commands.add_parser('read-tree')
    read_tree_parser.set_defaults(func=read_tree)
    read_tree_parser.add_argument('tree')

    commit_parser = commands.add_parser('commit')
    commit_parser.set_defaults(func=commit)
    commit_parser.add_argument('-m', '--message', required=True)

    log_parser = commands.add_parser('log')
    log_parser.set_defaults(func=log)
    log_parser.add_argument('oid', default='@', nargs='?')

    checkout_parser = commands.add_parser('checkout')
    checkout_parser.set_defaults(func=checkout)
    checkout_parser.add_argument('oid')

    tag_parser = commands.add_parser('tag')
    tag_parser.set_defaults(func=tag)
    tag_parser.add_argument('name')
    tag_parser.add_argument('oid', default='@', nargs='?')

    branch_parser = commands.add_parser('branch')
    branch_parser.set_defaults(func=branch)
    branch_parser.add_argument('name')
    branch_parser.add_argument('oid', default='@', nargs='?')

    show_ref_parser = commands.add_parser('show-ref')
    show_ref_parser.set_defaults(func=show_ref)
    show_ref_parser.add_argument('prefix', default='', nargs='?')

    return parser.parse_args(argv)


def _git_dir(args):
    return data.require_git_dir(args.work_dir)


def init(args):
    git_dir = data.init(args.work_dir)
    print(f'Initialized empty shagit repository in {git_dir}')


def hash_object(args):
    print(base.hash_file(args.work_dir, args.file))


def cat_file(args):
    git_dir = _git_dir(args)
    oid = base.get_oid(git_dir, args.object)
    sys.stdout.flush()
    sys.stdout.buffer.write(data.get_object(git_dir, oid, expected=args.type_))
    sys.stdout.flush()


def write_tree(args):
    print(base.write_tree(args.work_dir))


def read_tree(args):
    git_dir = _git_dir(args)
    tree = base.get_oid(git_dir, args.tree)
    if data.object_type(git_dir, tree) == 'commit':
        tree = base.get_commit(git_dir, tree).tree
    base.read_tree(tree, args.work_dir)
    print(f'Restored tree {tree} into {os.path.abspath(args.work_dir)}')


def commit(args):
    print(base.commit(args.work_dir, args.message))


def log(args):
    git_dir = _git_dir(args)
    oid = base.get_oid(git_dir, args.oid)
    for oid, commit_ in base.iter_commits(git_dir, oid):
        print(f'commit {oid}\n')
        print(textwrap.indent(commit_.message, '    '))
        print('')


def checkout(args):
    base.checkout(args.work_dir, args.oid)


def tag(args):
    base.create_tag(args.work_dir, args.name, args.oid)


def branch(args):
    oid = base.create_branch(args.work_dir, args.name, args.oid)
    print(f'Branch {args.name} created at {oid[:10]}')


def show_ref(args):
    for refname, ref in data.iter_refs(_git_dir(args), args.prefix):
        print(f'{ref.value} {refname}')
