"""URL routes of the sharing API."""

from django.urls import path

from server.apps.sharing import views

app_name = 'sharing'

urlpatterns = [
    path('groups', views.list_groups, name='groups'),
    # Literal routes first: they would otherwise match as group ids
    path('groups/create', views.create_group, name='create-group'),
    path('groups/<str:group_id>', views.delete_group, name='group'),
    path('upload', views.upload, name='upload'),
    path('upload/token', views.upload_token, name='upload-token'),
    path('upload/<str:group_id>', views.upload_to_group, name='upload-to-group'),
    path(
        'download/<str:group_id>/<path:filename>',
        views.download_file,
        name='download',
    ),
    path(
        'download-all/<str:group_id>',
        views.download_all,
        name='download-all',
    ),
]
