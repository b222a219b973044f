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

from k8s_keystone_auth import exception
from k8s_keystone_auth import test
from k8s_keystone_auth.policy import engine
from k8s_keystone_auth.policy import loader
from k8s_keystone_auth.policy import rules


DENY_ALL = rules.PolicyRule(verb=rules.WILDCARD, resource=rules.WILDCARD,
                            effect=rules.DENY)
ALLOW_GET_PODS = rules.PolicyRule(verb=rules.Literal('get'),
                                  resource=rules.Literal('pods'))

ALICE = rules.Identity('alice', roles=['member'])
BOB = rules.Identity('bob')
GET_PODS = rules.Action('get', resource='pods', namespace='default')


class EvaluateTestCase(test.TestCase):
    def test_first_match_wins(self):
        decision = engine.evaluate(
            ALICE, GET_PODS, rules.RuleSet([DENY_ALL, ALLOW_GET_PODS]))
        self.assertEqual(decision, engine.Decision(engine.DENY, 0))

        decision = engine.evaluate(
            ALICE, GET_PODS, rules.RuleSet([ALLOW_GET_PODS, DENY_ALL]))
        self.assertEqual(decision, engine.Decision(engine.ALLOW, 0))
        self.assertTrue(decision.allowed)

    def test_later_rule_matches(self):
        rule_set = rules.RuleSet([rules.PolicyRule(users=['bob']),
                                  ALLOW_GET_PODS])
        decision = engine.evaluate(ALICE, GET_PODS, rule_set)
        self.assertEqual(decision, engine.Decision(engine.ALLOW, 1))

    def test_wildcards_match_every_resource_action(self):
        rule_set = rules.RuleSet([rules.PolicyRule(verb=rules.WILDCARD,
                                                   resource=rules.WILDCARD)])
        actions = [
            GET_PODS,
            rules.Action('list', resource='nodes'),
            rules.Action('deletecollection', api_group='apps',
                         resource='deployments', namespace='kube-system'),
            rules.Action('watch', resource='*'),
        ]
        for action in actions:
            for identity in (ALICE, BOB):
                self.assertEqual(engine.evaluate(identity, action, rule_set),
                                 engine.Decision(engine.ALLOW, 0))

    def test_namespace_wildcard_skips_cluster_scope(self):
        rule_set = loader.load('[{"roles": ["member"], "verb": "*", '
                               '"resource": "*", "namespace": "*"}]')
        delete_nodes = rules.Action('delete', resource='nodes')
        self.assertEqual(engine.evaluate(ALICE, delete_nodes, rule_set),
                         engine.Decision(engine.NO_OPINION))
        self.assertEqual(engine.evaluate(ALICE, GET_PODS, rule_set),
                         engine.Decision(engine.ALLOW, 0))

    def test_resource_wildcard_skips_non_resource(self):
        rule_set = loader.load('[{"roles": ["member"], "verb": "get", '
                               '"resource": "*"}]')
        get_metrics = rules.Action('get', non_resource_path='/metrics')
        self.assertEqual(engine.evaluate(ALICE, get_metrics, rule_set),
                         engine.Decision(engine.NO_OPINION))

    def test_omitted_fields_reach_non_resource(self):
        rule_set = rules.RuleSet([rules.PolicyRule(verb=rules.WILDCARD)])
        get_metrics = rules.Action('get', non_resource_path='/metrics')
        self.assertEqual(engine.evaluate(BOB, get_metrics, rule_set),
                         engine.Decision(engine.ALLOW, 0))

    def test_no_match(self):
        rule_set = rules.RuleSet([rules.PolicyRule(users=['bob'])])
        self.assertEqual(engine.evaluate(ALICE, GET_PODS, rule_set),
                         engine.Decision(engine.NO_OPINION))
        self.assertEqual(engine.evaluate(ALICE, GET_PODS, rule_set,
                                         deny_by_default=True),
                         engine.Decision(engine.DENY))

    def test_empty_policy(self):
        rule_set = loader.load('[]')
        self.assertEqual(engine.evaluate(ALICE, GET_PODS, rule_set),
                         engine.Decision(engine.NO_OPINION))
        self.assertEqual(engine.evaluate(ALICE, GET_PODS, rule_set,
                                         deny_by_default=True),
                         engine.Decision(engine.DENY))

    def test_role_gate(self):
        rule_set = rules.RuleSet([rules.PolicyRule(
            roles=['admin', 'member'], verb=rules.WILDCARD)])
        self.assertTrue(engine.evaluate(ALICE, GET_PODS, rule_set).allowed)
        self.assertEqual(engine.evaluate(BOB, GET_PODS, rule_set).outcome,
                         engine.NO_OPINION)

    def test_malformed_action(self):
        action = rules.Action('get', resource='pods',
                              non_resource_path='/healthz')
        self.assertRaises(exception.MalformedRequestError, engine.evaluate,
                          ALICE, action, rules.RuleSet([ALLOW_GET_PODS]))

    def test_deterministic(self):
        rule_set = rules.RuleSet([ALLOW_GET_PODS, DENY_ALL])
        actions = [GET_PODS, rules.Action('delete', resource='pods')]
        first = [engine.evaluate(ALICE, a, rule_set) for a in actions]
        for _ in range(10):
            self.assertEqual(
                [engine.evaluate(ALICE, a, rule_set) for a in actions],
                first)

    def test_scenario(self):
        rule_set = loader.load('[{"users": ["alice"], "verb": "*", '
                               '"resource": "*", "effect": "allow"}]')
        delete_pods = rules.Action('delete', resource='pods')
        self.assertEqual(
            engine.evaluate(rules.Identity('alice'), delete_pods, rule_set),
            engine.Decision(engine.ALLOW, 0))
        self.assertEqual(
            engine.evaluate(rules.Identity('bob'), delete_pods, rule_set),
            engine.Decision(engine.NO_OPINION))
        self.assertEqual(
            engine.evaluate(rules.Identity('bob'), delete_pods, rule_set,
                            deny_by_default=True),
            engine.Decision(engine.DENY))
