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

import webob.exc

from k8s_keystone_auth.common import wsgi


# Environment variable used to pass the request params
PARAMS_ENV = 'openstack.params'


class JsonBodyMiddleware(wsgi.Middleware):
    """Middleware to allow method arguments to be passed as serialized JSON.

    The API server posts review objects as a JSON body; their top-level keys
    become the keyword arguments of the routed method.

    Filters out the parameters `self`, `context` and anything beginning with
    an underscore.

    """
    def process_request(self, request):
        # Ignore unrecognized content types. Empty string indicates
        # the client did not explicitly set the header
        if request.content_type not in ('application/json', ''):
            return

        params_json = request.body
        if not params_json:
            return

        try:
            params_parsed = json.loads(params_json)
        except ValueError:
            msg = "Malformed json in request body"
            raise webob.exc.HTTPBadRequest(explanation=msg)

        if not isinstance(params_parsed, dict):
            msg = "Request body must be a JSON object"
            raise webob.exc.HTTPBadRequest(explanation=msg)

        params = {}
        for k, v in params_parsed.items():
            if k in ('self', 'context'):
                continue
            if k.startswith('_'):
                continue
            params[k] = v

        request.environ[PARAMS_ENV] = params
