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

"""First-match-wins evaluation of a :class:`RuleSet`.

Rules are tried in order and the first one whose predicate matches decides
the outcome. Rule order therefore encodes precedence: a deny rule only
overrides a broader allow rule when it comes first.

"""

from k8s_keystone_auth.policy import rules


ALLOW = 'Allow'
DENY = 'Deny'
NO_OPINION = 'NoOpinion'


class Decision(object):
    """Outcome of an evaluation.

    ``rule_index`` is the position of the matching rule, or ``None`` when
    no rule matched.

    """

    __slots__ = ('outcome', 'rule_index')

    def __init__(self, outcome, rule_index=None):
        self.outcome = outcome
        self.rule_index = rule_index

    @property
    def allowed(self):
        return self.outcome == ALLOW

    def __eq__(self, other):
        return (isinstance(other, Decision) and
                (other.outcome, other.rule_index) ==
                (self.outcome, self.rule_index))

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.outcome, self.rule_index))

    def __repr__(self):
        return 'Decision(%s, rule_index=%r)' % (self.outcome, self.rule_index)


def evaluate(identity, action, rule_set, deny_by_default=False):
    """Decide whether `identity` may perform `action` under `rule_set`.

    :param identity: a :class:`rules.Identity`
    :param action: a :class:`rules.Action`
    :param rule_set: a :class:`rules.RuleSet`
    :param deny_by_default: return DENY instead of NO_OPINION when no rule
                            matches
    :returns: a :class:`Decision`
    :raises: :class:`exception.MalformedRequestError` if `action` has both
             resource and non-resource fields populated

    """
    action.validate()

    for index, rule in enumerate(rule_set):
        if rule.matches(identity, action):
            outcome = ALLOW if rule.effect == rules.ALLOW else DENY
            return Decision(outcome, index)

    if deny_by_default:
        return Decision(DENY)
    return Decision(NO_OPINION)
