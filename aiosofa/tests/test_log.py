# -*- coding: utf-8 -*-
#
# Copyright (C) 2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import logging

import aiosofa.log

from . import utils


class DebugLoggingTestCase(utils.TestCase):

    def setUp(self):
        super().setUp()
        self.loggers = [logging.getLogger('aiosofa'),
                        logging.getLogger('aiosofa.feeds')]
        self.saved = [(lg.level, list(lg.handlers), lg.propagate)
                      for lg in self.loggers]

    def tearDown(self):
        for lg, (level, handlers, propagate) in zip(self.loggers, self.saved):
            lg.setLevel(level)
            lg.handlers[:] = handlers
            lg.propagate = propagate
        super().tearDown()

    def test_activate(self):
        aiosofa.log.activate_debug_logging()
        for lg, (_, handlers, _) in zip(self.loggers, self.saved):
            self.assertEqual(logging.DEBUG, lg.level)
            self.assertFalse(lg.propagate)
            self.assertEqual(len(handlers) + 1, len(lg.handlers))

    def test_feeds_formatter_includes_database(self):
        aiosofa.log.activate_debug_logging()
        handler = logging.getLogger('aiosofa.feeds').handlers[-1]
        record = logging.LogRecord('aiosofa.feeds', logging.DEBUG, __file__,
                                   1, 'feed %s', ('idle',), None)
        record.database = 'db'
        self.assertIn(' - db - feed idle', handler.format(record))
