#!/usr/bin/env python

from setuptools import setup

setup(name='jabberpump',
      version='0.1.0',
      description='Blocking and non blocking request runtime for Jabber/XMPP clients',
      license='GPL-3.0-or-later',
      python_requires='>=3.10',
      packages=['jabberpump', 'jabberpump.modules'],
      install_requires=[
          'lxml',
          'idna',
          'precis-i18n',
      ],
      )
