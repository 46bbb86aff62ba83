# send.py

import base64
import binascii

from django.http import HttpResponseBadRequest, JsonResponse
from django.views import View

from p2pvoicemail.backend import node
from p2pvoicemail.backend.records import VoicemailIntent
from p2pvoicemail.backend.views.responses import error_response

################################################################################

def _satoshis(request, default=None):
    value = request.POST.get('satoshis', default)
    if value is None:
        raise ValueError('satoshis is required')

    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f'satoshis must be an integer, got {value!r}') from None


class SendVoicemail(View):
    '''
    Lock a voicemail to `recipient` (identity key or "self").

    POST recipient, audio (base64), satoshis, [note], [save_copy]
    '''
    def post(self, request):
        recipient = request.POST.get('recipient', 'self')
        audio = request.POST.get('audio', '')
        note = request.POST.get('note', '')
        save_copy = request.POST.get('save_copy', 'true').lower() not in ('0', 'false', 'no')

        try:
            audio = base64.b64decode(audio, validate=True)
        except (binascii.Error, ValueError):
            return HttpResponseBadRequest('audio must be base64')

        try:
            intent = VoicemailIntent(recipient, audio, _satoshis(request, 1), note, save_copy)
            result = node.get_engine().send(intent)
        except Exception as e:
            return error_response(e)

        return JsonResponse(result.dict())


class CreateContact(View):
    '''
    POST name, identity_key
    '''
    def post(self, request):
        name = request.POST.get('name')
        identity_key = request.POST.get('identity_key')

        try:
            record = node.get_engine().create_contact(name, identity_key)
        except Exception as e:
            return error_response(e)

        return JsonResponse(record.dict())


class CreateTask(View):
    '''
    POST description, satoshis
    '''
    def post(self, request):
        description = request.POST.get('description')

        try:
            record = node.get_engine().create_task(description, _satoshis(request))
        except Exception as e:
            return error_response(e)

        return JsonResponse(record.dict())
