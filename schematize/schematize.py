"""

Command line utility to infer structural schemas from JSON and XML documents.

"""


import argparse
import logging
import tempfile
import sys
import os
import json
from schematize import _version

_ARG_TYPES = {'str': str, 'int': int, 'bool': bool}


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
                'type': _ARG_TYPES[arg['type']],
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
                del kwargs['type']
            carg = cmd_parser.add_argument(arg['name'], **kwargs)
            if arg['name'].startswith('-'):
                carg.required = arg.get('required', True)

def dynamic_import(module, func):
    """Dynamically import a module and function."""
    mod = __import__(module, fromlist=[func])
    return getattr(mod, func)

def read_stdin_to_file():
    """Copies stdin into a temporary file and returns its path."""
    temp_input = tempfile.NamedTemporaryFile(delete=False, mode='w', encoding='utf-8')
    s = sys.stdin.read()
    while s:
        temp_input.write(s)
        s = sys.stdin.read()
    temp_input.flush()
    temp_input.close()
    return temp_input.name

def main():
    """Main function for the command line utility."""
    commands = load_commands()
    parser = argparse.ArgumentParser(description='Infer structural schemas from JSON and XML documents.')
    parser.add_argument('--version', action='store_true', help='Print the version of Schematize.')
    parser.add_argument('--verbose', action='store_true', help='Log progress to stderr.')

    subparsers = parser.add_subparsers(dest='command')
    create_subparsers(subparsers, commands)

    args = parser.parse_args()

    if 'version' in args and args.version:
        print(f'Schematize {_version.version}')
        return

    if args.command is None:
        parser.print_help()
        return

    logging.basicConfig(level=logging.DEBUG if getattr(args, 'verbose', False) else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    temp_input = None
    try:
        command = next((cmd for cmd in commands if cmd['command'] == args.command), None)
        if not command:
            print(f"Error: Command {args.command} not found.")
            sys.exit(1)

        input_file_paths = list(getattr(args, 'input', None) or [])
        if not input_file_paths:
            temp_input = read_stdin_to_file()
            input_file_paths = [temp_input]

        suppress_print = False
        temp_output = None
        output_file_path = getattr(args, 'out', None)
        if output_file_path is None:
            suppress_print = True
            temp_output = tempfile.NamedTemporaryFile(delete=False)
            temp_output.close()
            output_file_path = temp_output.name

        def printmsg(s):
            if not suppress_print:
                print(s)

        func = dynamic_import(*command['function']['name'].rsplit('.', 1))
        func_args = {}
        for arg, val in command['function']['args'].items():
            if val == 'input_file_paths':
                func_args[arg] = input_file_paths
            elif val == 'output_file_path':
                func_args[arg] = output_file_path
            elif val.startswith('args.'):
                if hasattr(args, val[5:]):
                    func_args[arg] = getattr(args, val[5:])
            else:
                func_args[arg] = val
        if temp_input and func_args.get('schema_type_from_filename'):
            # stdin has no file name to derive a schema type from
            func_args['schema_type_from_filename'] = False
        printmsg(f'Executing {command["description"]} with input {", ".join(input_file_paths)} and output {output_file_path}')
        func(**func_args)

        if temp_output:
            with open(output_file_path, 'r', encoding='utf-8') as f:
                sys.stdout.write(f.read())
            os.remove(output_file_path)

    except Exception as e:
        print("Error: ", str(e))
        sys.exit(1)
    finally:
        if temp_input:
            try:
                os.remove(temp_input)
            except OSError as e:
                print(f"Error: Could not delete temporary input file {temp_input}. {e}")

if __name__ == "__main__":
    main()
