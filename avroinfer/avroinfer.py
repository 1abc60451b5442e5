"""

Command line utility to infer Avro schemas from JSON samples and OpenAPI documents.

"""


import argparse
import json
import logging
import os
import sys
import tempfile

from avroinfer import _version
from avroinfer.errors import AvroInferError

logger = logging.getLogger(__name__)

ARG_TYPES = {
    'str': str,
    'bool': bool,
}


def load_commands():
    """Load the commands from the commands.json file."""
    commands_path = os.path.join(os.path.dirname(__file__), 'commands.json')
    with open(commands_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def create_subparsers(subparsers, commands):
    """Create subparsers for the commands."""
    for command in commands:
        cmd_parser = subparsers.add_parser(command['command'], help=command['description'])
        for arg in command['args']:
            kwargs = {
                'help': arg['help'],
            }
            if 'nargs' in arg:
                kwargs['nargs'] = arg['nargs']
            if 'choices' in arg:
                kwargs['choices'] = arg['choices']
            if 'default' in arg:
                kwargs['default'] = arg['default']
            if arg['type'] == 'bool':
                kwargs['action'] = 'store_true'
            else:
                kwargs['type'] = ARG_TYPES[arg['type']]
            carg = cmd_parser.add_argument(arg['name'], **kwargs)
            if arg['name'].startswith('-'):
                carg.required = arg.get('required', True)


def dynamic_import(module, func):
    """Dynamically import a module and function."""
    mod = __import__(module, fromlist=[func])
    return getattr(mod, func)


def configure_logging(verbose: bool) -> None:
    """Send log output to stderr, at DEBUG level if verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr)


def main():
    """Main function for the command line utility."""
    commands = load_commands()
    parser = argparse.ArgumentParser(description='Infer Avro schemas from JSON samples and OpenAPI documents.')
    parser.add_argument('--version', action='store_true', help='Print the version of avroinfer.')
    parser.add_argument('--verbose', action='store_true', help='Log debug output to stderr.')

    subparsers = parser.add_subparsers(dest='command')
    create_subparsers(subparsers, commands)

    args = parser.parse_args()
    configure_logging(getattr(args, 'verbose', False))

    if 'version' in args and args.version:
        print(f'avroinfer {_version.version}')
        return

    if args.command is None:
        parser.print_help()
        return

    command = next((cmd for cmd in commands if cmd['command'] == args.command), None)
    if not command:
        print(f"Error: Command {args.command} not found.", file=sys.stderr)
        sys.exit(1)

    temp_input = None
    try:
        input_file_path = getattr(args, 'input', None)
        if input_file_path is None:
            temp_input = tempfile.NamedTemporaryFile(delete=False, mode='w', encoding='utf-8', suffix='.json')
            input_file_path = temp_input.name
            temp_input.write(sys.stdin.read())
            temp_input.flush()
            temp_input.close()
        output_file_path = getattr(args, 'out', None)

        module_name, func_name = command['function']['name'].rsplit('.', 1)
        func = dynamic_import(module_name, func_name)
        func_args = {}
        for arg, val in command['function']['args'].items():
            if val == 'input_file_path':
                func_args[arg] = input_file_path
            elif val == 'output_file_path':
                func_args[arg] = output_file_path
            elif val.startswith('args.'):
                if getattr(args, val[5:], None) is not None:
                    func_args[arg] = getattr(args, val[5:])
            else:
                func_args[arg] = val
        logger.info('Executing %s with input %s and output %s',
                    command['description'], input_file_path, output_file_path)
        func(**func_args)
    except (AvroInferError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        if temp_input:
            try:
                os.remove(temp_input.name)
            except OSError as e:
                print(f"Error: Could not delete temporary input file {temp_input.name}. {e}", file=sys.stderr)


if __name__ == "__main__":
    main()
