#!/usr/bin/env python
# -*- coding: utf-8 -*-
import os
import re
from io import open

from setuptools import (
    Command,
    setup,
)

readme = open('README.rst', encoding='utf8').read()


def read_reqs(name):
    with open(os.path.join(os.path.dirname(__file__), name), encoding='utf8') as f:
        return [line for line in f.read().split('\n') if line and not line.strip().startswith('#')]


def read_version():
    with open(os.path.join('admin_panel', '__init__.py'), encoding='utf8') as f:
        m = re.search(r'''__version__\s*=\s*['"]([^'"]*)['"]''', f.read())
        if m:
            return m.group(1)
        raise ValueError("couldn't find version")


class Tag(Command):
    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        from subprocess import call

        version = read_version()
        errno = call(['git', 'tag', '--annotate', version, '--message', f'Version {version}'])
        if errno == 0:
            print(f'Added tag for version {version}')
        raise SystemExit(errno)


class ReleaseCheck(Command):
    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        from subprocess import check_output, CalledProcessError

        try:
            tag = check_output(['git', 'describe', 'HEAD']).strip().decode('utf8')
        except CalledProcessError:
            tag = ''
        version = read_version()
        if tag != version:
            print(f'Missing {version} tag on release')
            raise SystemExit(1)

        current_branch = check_output(['git', 'rev-parse', '--abbrev-ref', 'HEAD']).strip().decode('utf8')
        if current_branch != 'main':
            print('Only release from main')
            raise SystemExit(1)

        print('Ok to distribute files')


setup(
    name='admin-panel-fields',
    version=read_version(),
    description='Declarative field definitions for building Django admin panels',
    long_description=readme,
    long_description_content_type='text/x-rst',
    packages=['admin_panel'],
    include_package_data=True,
    python_requires='>=3.10',
    install_requires=['Django >= 4.2'] + read_reqs('requirements.txt'),
    extras_require={
        'test': read_reqs('test_requirements.txt'),
    },
    license='BSD',
    zip_safe=False,
    keywords='django admin fields',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Framework :: Django',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    cmdclass={'tag': Tag, 'release_check': ReleaseCheck},
)
