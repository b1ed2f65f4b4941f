import sys
from subprocess import run

assert __name__ == '__main__'

args = sys.argv[1:]
if len(args) != 2:
    print('usage: run-tests.py <python version> <django version>, for example: run-tests.py 3.12 5.0')
    exit(2)
python_version, django_version = args

assert python_version == '.'.join(map(str, sys.version_info[:2])), f'Running on {sys.version}, expected {python_version}'

tox_env = f"py{python_version.replace('.', '')}-django{django_version.replace('.', '')}"

result = run(['tox', '-e', tox_env])
exit(result.returncode)
