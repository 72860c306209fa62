from django.contrib import admin

from .models import AdvisorResponse, PreProject, PreProjectDiscussant, PreProjectStudent


class PreProjectStudentInline(admin.TabularInline):
    model = PreProjectStudent
    extra = 0
    raw_id_fields = ["student"]


class AdvisorResponseInline(admin.TabularInline):
    model = AdvisorResponse
    extra = 0
    raw_id_fields = ["advisor"]
    readonly_fields = ["status", "created", "modified"]


class PreProjectDiscussantInline(admin.TabularInline):
    model = PreProjectDiscussant
    extra = 0
    raw_id_fields = ["discussant"]


@admin.register(PreProject)
class PreProjectAdmin(admin.ModelAdmin):
    list_display = ["name", "owner", "year", "season", "accepted_advisor", "can_update", "degree", "created"]
    list_filter = ["season", "year", "can_update"]
    search_fields = ["name", "owner__email"]
    ordering = ["-created"]
    raw_id_fields = ["owner", "accepted_advisor"]
    inlines = [PreProjectStudentInline, AdvisorResponseInline, PreProjectDiscussantInline]


@admin.register(AdvisorResponse)
class AdvisorResponseAdmin(admin.ModelAdmin):
    list_display = ["pre_project", "advisor", "status", "modified"]
    list_filter = ["status"]
    search_fields = ["pre_project__name", "advisor__email"]
    ordering = ["-modified"]
