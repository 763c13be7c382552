# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

__version__ = '0.9.0'

__license__ = 'AGPLv3+'
__summary__ = 'Schema driven conversion between typed Python objects and XML elements'

__author__ = 'Dan Pascu'
__copyright__ = f'Copyright 2020-present {__author__}'
