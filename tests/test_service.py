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

import webob

from k8s_keystone_auth import exception
from k8s_keystone_auth import service
from k8s_keystone_auth import test
from k8s_keystone_auth.policy import core as policy
from k8s_keystone_auth.policy import loader
from k8s_keystone_auth.policy import rules
from k8s_keystone_auth.policy import store


POLICY = json.dumps([
    {'roles': ['member'], 'verb': 'get', 'nonResourcePath': '/healthz'},
    {'resource': 'secrets', 'verb': '*', 'effect': 'deny'},
    {'projects': ['demo'], 'roles': ['member'], 'verb': '*',
     'resource': '*', 'namespace': 'default'},
])

ALICE = rules.Identity('alice', user_id='u1', project_id='p1',
                       project_name='demo', domain_name='Default',
                       roles=['member'])


class FakeResolver(object):
    def resolve(self, token):
        if token != 'good':
            raise exception.AuthenticationError(reason='bad token')
        return ALICE


def access_review(**spec):
    spec.setdefault('user', 'alice')
    spec.setdefault('uid', 'u1')
    spec.setdefault('extra', {
        service.EXTRA_ROLES: ['member'],
        service.EXTRA_PROJECT_ID: ['p1'],
        service.EXTRA_PROJECT_NAME: ['demo'],
    })
    return {'apiVersion': 'authorization.k8s.io/v1beta1',
            'kind': 'SubjectAccessReview',
            'spec': spec}


class WebhookTestCase(test.TestCase):
    def setUp(self):
        super(WebhookTestCase, self).setUp()
        authorizer = policy.Authorizer(store.PolicyStore(loader.load(POLICY)))
        self.app = service.app_factory(self.conf, FakeResolver(), authorizer)

    def post(self, body):
        if not isinstance(body, str):
            body = json.dumps(body)
        req = webob.Request.blank('/webhook', method='POST',
                                  content_type='application/json',
                                  body=body.encode('utf-8'))
        return req.get_response(self.app)

    def status(self, body):
        resp = self.post(body)
        self.assertEqual(resp.status_int, 200)
        return json.loads(resp.body)['status']

    def test_token_review(self):
        resp = self.post({'apiVersion': 'authentication.k8s.io/v1beta1',
                          'kind': 'TokenReview',
                          'spec': {'token': 'good'}})
        self.assertEqual(resp.status_int, 200)
        body = json.loads(resp.body)
        self.assertEqual(body['kind'], 'TokenReview')
        self.assertEqual(body['apiVersion'], 'authentication.k8s.io/v1beta1')
        self.assertTrue(body['status']['authenticated'])
        user = body['status']['user']
        self.assertEqual(user['username'], 'alice')
        self.assertEqual(user['uid'], 'u1')
        self.assertEqual(user['groups'], ['p1'])
        self.assertEqual(user['extra'][service.EXTRA_ROLES], ['member'])
        self.assertEqual(user['extra'][service.EXTRA_PROJECT_NAME], ['demo'])
        self.assertEqual(user['extra'][service.EXTRA_USER_DOMAIN_NAME],
                         ['Default'])

    def test_token_review_bad_token(self):
        status = self.status({'kind': 'TokenReview',
                              'spec': {'token': 'bad'}})
        self.assertFalse(status['authenticated'])
        self.assertIn('bad token', status['error'])

    def test_resource_allowed(self):
        status = self.status(access_review(resourceAttributes={
            'namespace': 'default', 'verb': 'delete', 'resource': 'pods'}))
        self.assertEqual(status, {'allowed': True,
                                  'reason': 'allowed by rule 2'})

    def test_resource_denied(self):
        status = self.status(access_review(resourceAttributes={
            'namespace': 'default', 'verb': 'get', 'resource': 'secrets'}))
        self.assertEqual(status, {'allowed': False,
                                  'reason': 'explicitly denied by rule 1'})

    def test_no_matching_rule(self):
        status = self.status(access_review(resourceAttributes={
            'namespace': 'kube-system', 'verb': 'get', 'resource': 'pods'}))
        self.assertEqual(status, {'allowed': False,
                                  'reason': policy.REASON_NO_MATCH})

    def test_subresource(self):
        status = self.status(access_review(resourceAttributes={
            'namespace': 'kube-system', 'verb': 'get', 'resource': 'pods',
            'subresource': 'log'}))
        self.assertFalse(status['allowed'])

    def test_non_resource(self):
        status = self.status(access_review(nonResourceAttributes={
            'path': '/healthz', 'verb': 'get'}))
        self.assertEqual(status, {'allowed': True,
                                  'reason': 'allowed by rule 0'})

    def test_contradictory_attributes(self):
        status = self.status(access_review(
            resourceAttributes={'verb': 'get', 'resource': 'pods'},
            nonResourceAttributes={'path': '/healthz', 'verb': 'get'}))
        self.assertFalse(status['allowed'])
        self.assertIn('Malformed request', status['reason'])

    def test_missing_attributes(self):
        status = self.status(access_review())
        self.assertFalse(status['allowed'])

    def test_missing_user(self):
        status = self.status(access_review(user='', resourceAttributes={
            'verb': 'get', 'resource': 'pods'}))
        self.assertFalse(status['allowed'])
        self.assertIn('user is empty', status['reason'])

    def test_unknown_kind(self):
        resp = self.post({'kind': 'Pod', 'spec': {}})
        self.assertEqual(resp.status_int, 400)
        self.assertEqual(json.loads(resp.body)['error']['code'], 400)

    def test_malformed_json(self):
        resp = self.post('{"kind": ')
        self.assertEqual(resp.status_int, 400)

    def test_get_webhook_not_found(self):
        resp = webob.Request.blank('/webhook').get_response(self.app)
        self.assertEqual(resp.status_int, 404)

    def test_healthz(self):
        resp = webob.Request.blank('/healthz').get_response(self.app)
        self.assertEqual(resp.status_int, 200)
        self.assertEqual(resp.text, 'ok')


class DisabledAuthorizationTestCase(test.TestCase):
    def test_everything_allowed(self):
        app = service.app_factory(self.conf, FakeResolver(),
                                  policy.Authorizer())
        req = webob.Request.blank(
            '/webhook', method='POST', content_type='application/json',
            body=json.dumps(access_review(resourceAttributes={
                'verb': 'delete', 'resource': 'secrets'})).encode('utf-8'))
        status = json.loads(req.get_response(app).body)['status']
        self.assertEqual(status, {'allowed': True,
                                  'reason': policy.REASON_DISABLED})


class ReviewTranslationTestCase(test.TestCase):
    def test_identity_from_review(self):
        identity = service.identity_from_review(access_review()['spec'])
        self.assertEqual(identity.user_name, 'alice')
        self.assertEqual(identity.project_id, 'p1')
        self.assertEqual(identity.project_name, 'demo')
        self.assertEqual(identity.roles, frozenset(['member']))

    def test_action_from_review(self):
        action = service.action_from_review({'resourceAttributes': {
            'namespace': 'default', 'verb': 'get', 'group': 'apps',
            'resource': 'deployments', 'subresource': 'scale',
            'name': 'web'}})
        self.assertEqual(action, rules.Action(
            'get', api_group='apps', resource='deployments/scale',
            namespace='default', resource_name='web'))

    def test_token_review_user_round_trip(self):
        user = service.identity_to_user(ALICE)
        identity = service.identity_from_review({
            'user': user['username'], 'uid': user['uid'],
            'extra': user['extra']})
        self.assertEqual(identity, ALICE)
