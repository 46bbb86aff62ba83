# receive.py

from django.http import JsonResponse
from django.views import View

from p2pvoicemail.backend import node
from p2pvoicemail.backend.views.responses import error_response, records_response

################################################################################

class Refresh(View):
    '''
    Rebuild `view` from the wallet and return its records.
    Records that could not be rebuilt come back as null.
    '''
    def get(self, request, view):
        try:
            records = node.get_engine().refresh(view)
        except Exception as e:
            return error_response(e)

        return records_response(view, records)


class Absorb(View):
    '''
    Pull pending voicemail notifications off the relay into the inbox basket
    '''
    def post(self, request):
        try:
            absorbed = node.get_engine().absorb()
        except Exception as e:
            return error_response(e)

        return JsonResponse({'absorbed': [str(o) for o in absorbed]})
