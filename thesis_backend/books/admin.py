from django.contrib import admin

from .models import Book


@admin.register(Book)
class BookAdmin(admin.ModelAdmin):
    list_display = ["name", "year", "season", "advisor", "degree", "created"]
    list_filter = ["season", "year"]
    search_fields = ["name", "advisor__email", "students__email"]
    ordering = ["-year", "-created"]
    raw_id_fields = ["advisor"]
    filter_horizontal = ["students", "discussants"]
    readonly_fields = ["source_pre_project_id"]
