"""
Signing lifecycle module.

Routes a document to one or more recipients, tracks each recipient's progress,
keeps their draft and final annotations and moves the document through
draft -> sent_for_signing -> waiting_confirmation -> completed, with an
unbounded send-back loop before confirmation.
"""
