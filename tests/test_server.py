# vim: tabstop=4 shiftwidth=4 softtabstop=4

# Copyright 2017 OpenStack Foundation
#
# Licensed under the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License. You may obtain
# a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations
# under the License.

import json

from unittest import mock

import eventlet.patcher

from k8s_keystone_auth import exception
from k8s_keystone_auth import server
from k8s_keystone_auth import test


class BuildAppTestCase(test.TestCase):
    def setUp(self):
        super(BuildAppTestCase, self).setUp()
        self.opt(auth_url='http://keystone:5000/v3')

    def test_authorization_disabled(self):
        app, reloader = server.build_app(self.conf)
        self.assertIsNotNone(app)
        self.assertIsNone(reloader)

    def test_policy_file(self):
        path = self.write_file(json.dumps([{'users': ['alice']}]))
        self.opt(policy_file=path, policy_reload_interval=10)
        app, reloader = server.build_app(self.conf)
        self.assertEqual(reloader.interval, 10)
        self.assertEqual(len(reloader.store.current()), 1)

    def test_invalid_config(self):
        self.opt(auth_url='')
        self.assertRaises(exception.ConfigurationError,
                          server.build_app, self.conf)

    def test_bad_policy(self):
        self.opt(policy_file=self.write_file('{"verb": "get"}'))
        self.assertRaises(exception.PolicyParseError,
                          server.build_app, self.conf)


class MainTestCase(test.TestCase):
    def test_refuses_to_start(self):
        with mock.patch.object(server, 'CONF', self.conf), \
                mock.patch.object(server.config, 'setup_logging'), \
                mock.patch.object(server.wsgi, 'Server') as wsgi_server:
            self.assertEqual(server.main(['--policy_file', '/tmp/p.json']), 1)
        self.assertFalse(wsgi_server.called)


class GreenIOTestCase(test.TestCase):
    def test_blocking_io_is_green(self):
        # Keystone and kubernetes calls must yield to other requests.
        self.assertTrue(eventlet.patcher.is_monkey_patched('socket'))
        self.assertTrue(eventlet.patcher.is_monkey_patched('time'))


class WsgiServerTestCase(test.TestCase):
    def test_start_serves_app_in_pool(self):
        app = object()
        wsgi_server = server.wsgi.Server(app, 8443, threads=4)
        with mock.patch.object(server.wsgi.eventlet, 'listen') as listen, \
                mock.patch.object(wsgi_server.pool, 'spawn') as spawn:
            wsgi_server.start(host='127.0.0.1')
        listen.assert_called_once_with(('127.0.0.1', 8443), backlog=128)
        spawn.assert_called_once_with(wsgi_server._run, app,
                                      listen.return_value)
