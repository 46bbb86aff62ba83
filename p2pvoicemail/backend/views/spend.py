# spend.py
# Everything that consumes a token. The record is looked up in the local view
# first, so stale outpoints come back as 404.

from django.http import JsonResponse
from django.views import View

from p2pvoicemail.backend import baskets, node
from p2pvoicemail.backend.views.responses import error_response

################################################################################

class Redeem(View):
    '''
    POST outpoint of an inbox voicemail. Its value goes to the wallet and an
    archived copy is kept.
    '''
    def post(self, request):
        outpoint = request.POST.get('outpoint', '')

        try:
            engine = node.get_engine()
            record = engine.find(baskets.INBOX, outpoint)
            archived = engine.redeem_and_archive(record)
        except Exception as e:
            return error_response(e)

        return JsonResponse({'redeemed': str(record.outpoint), 'archived': archived.dict()})


class Forget(View):
    '''
    POST outpoint, view (inbox, sent or archived)
    '''
    def post(self, request):
        outpoint = request.POST.get('outpoint', '')
        view = request.POST.get('view', baskets.INBOX)

        try:
            if view not in (baskets.INBOX, baskets.SENT, baskets.ARCHIVED):
                raise ValueError(f'cannot forget voicemail from {view!r}')

            engine = node.get_engine()
            txid = engine.forget(engine.find(view, outpoint))
        except Exception as e:
            return error_response(e)

        return JsonResponse({'forgotten': outpoint, 'txid': txid})


class ForgetContact(View):
    def post(self, request):
        outpoint = request.POST.get('outpoint', '')

        try:
            engine = node.get_engine()
            txid = engine.forget_contact(engine.find(baskets.CONTACTS, outpoint))
        except Exception as e:
            return error_response(e)

        return JsonResponse({'forgotten': outpoint, 'txid': txid})


class CompleteTask(View):
    def post(self, request):
        outpoint = request.POST.get('outpoint', '')

        try:
            engine = node.get_engine()
            txid = engine.complete_task(engine.find(baskets.TASKS, outpoint))
        except Exception as e:
            return error_response(e)

        return JsonResponse({'completed': outpoint, 'txid': txid})
