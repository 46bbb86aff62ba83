"""p2pvoicemail URL Configuration

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/stable/topics/http/urls/
"""
from django.urls import path

from p2pvoicemail.backend.views import *

urlpatterns = [
    # voicemail
    path('send_voicemail/', SendVoicemail.as_view()),
    path('absorb/', Absorb.as_view()),
    path('redeem/', Redeem.as_view()),
    path('forget/', Forget.as_view()),

    # get information
    path('refresh/<str:view>/', Refresh.as_view()),

    # contacts
    path('create_contact/', CreateContact.as_view()),
    path('forget_contact/', ForgetContact.as_view()),

    # tasks
    path('create_task/', CreateTask.as_view()),
    path('complete_task/', CompleteTask.as_view())
]
